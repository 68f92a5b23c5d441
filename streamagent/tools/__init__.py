"""Tools the agent can call."""

from streamagent.tools.base import BoundTool, ConversationTool, Tool, bind_tool, make_tool
from streamagent.tools.prune import PRUNE_TOOL_NAME, PruneTool
from streamagent.tools.registry import ToolsRegistry

__all__ = [
    "PRUNE_TOOL_NAME",
    "BoundTool",
    "ConversationTool",
    "PruneTool",
    "Tool",
    "ToolsRegistry",
    "bind_tool",
    "make_tool",
]
