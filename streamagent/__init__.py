"""Streaming tool-calling agent loop with schema-validated tools."""

__version__ = "0.1.0"

from streamagent.config import AgentConfig  # noqa: E402
from streamagent.models.chunks import (  # noqa: E402
    AgentOutputChunk,
    NewIteration,
    TextChunk,
    ToolCallRequest,
    ToolCallResponse,
    is_new_iteration,
    is_text_chunk,
    is_tool_call_request,
    is_tool_call_response,
)
from streamagent.models.schema import ParseError, ParseResult, schema  # noqa: E402
from streamagent.services.agent import Agent, AgentRun  # noqa: E402
from streamagent.tools import Tool, make_tool  # noqa: E402
from streamagent.validation import parse, safe_parse  # noqa: E402

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentOutputChunk",
    "AgentRun",
    "NewIteration",
    "ParseError",
    "ParseResult",
    "TextChunk",
    "Tool",
    "ToolCallRequest",
    "ToolCallResponse",
    "__version__",
    "is_new_iteration",
    "is_text_chunk",
    "is_tool_call_request",
    "is_tool_call_response",
    "make_tool",
    "parse",
    "safe_parse",
    "schema",
]
