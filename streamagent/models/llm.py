"""Conversation and provider wire models (provider-agnostic)."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from streamagent.models.chunks import AgentOutputChunk

Role = Literal["system", "user", "assistant", "tool"]
StopReason = Literal["complete", "max_iterations"]


class FunctionCall(BaseModel):
    """Name and serialized arguments of a recorded tool call."""

    name: str
    arguments: str


class ToolCallRecord(BaseModel):
    """A tool call recorded on an assistant message."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class ChatMessage(BaseModel):
    """A message in the conversation history.

    Assistant content is accumulated in place while the provider streams, so
    this model is intentionally mutable.
    """

    role: Role
    content: str = ""
    tool_calls: list[ToolCallRecord] | None = None
    tool_call_id: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump in the chat-completions message shape."""
        return self.model_dump(exclude_none=True)


class FunctionDefinition(BaseModel):
    """Function part of a tool declaration."""

    name: str
    description: str
    parameters: dict[str, Any]


class ToolDeclaration(BaseModel):
    """A tool as advertised to the provider."""

    type: Literal["function"] = "function"
    function: FunctionDefinition


class FunctionDelta(BaseModel):
    """Partial function name/arguments carried by a streamed fragment."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    """A tool-call fragment received while the provider streams."""

    model_config = ConfigDict(extra="ignore")

    index: int
    id: str | None = None
    function: FunctionDelta | None = None


class StreamFrame(BaseModel):
    """One frame of a streaming completion."""

    model_config = ConfigDict(extra="ignore")

    content: str | None = None
    tool_calls: list[ToolCallDelta] = Field(default_factory=list)
    finish_reason: str | None = None


class CompletionRequest(BaseModel):
    """Everything a provider needs to open one streaming completion."""

    model: str
    messages: list[ChatMessage]
    tools: list[ToolDeclaration] = Field(default_factory=list)
    tool_choice: Literal["auto", "none", "required"] = "auto"
    parallel_tool_calls: bool = True


@dataclass
class AgentRunResult:
    """Everything an agent run produced, once it has terminated."""

    chunks: list[AgentOutputChunk]
    text: str
    stop_reason: StopReason | None
    iterations: int
    messages: list[ChatMessage]
