"""Tools registry for the agent loop."""

from collections.abc import Iterable

from streamagent.tools.base import ConversationTool, Tool, bind_tool
from streamagent.tools.prune import PRUNE_TOOL_NAME, PruneTool
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry of caller-supplied tools.

    The built-in prune tool is added per conversation, because it needs to know
    how many seed messages the conversation started with.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: Tool) -> None:
        """Register a tool, replacing any previous tool with the same name."""
        if tool.name == PRUNE_TOOL_NAME:
            logger.warning(f"Tool name '{PRUNE_TOOL_NAME}' is reserved; the built-in prune tool takes precedence")
        self._tools[tool.name] = tool

    def get_conversation_tools(self, seed_length: int) -> dict[str, ConversationTool]:
        """Get tools bound for one conversation, keyed by name, prune included."""
        tools: dict[str, ConversationTool] = {name: bind_tool(tool) for name, tool in self._tools.items()}
        tools[PRUNE_TOOL_NAME] = PruneTool(seed_length=seed_length)
        return tools

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools
