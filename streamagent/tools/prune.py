"""Built-in tool that compacts the conversation history."""

import asyncio
from dataclasses import dataclass, field

from streamagent.models.llm import ChatMessage, ToolDeclaration
from streamagent.tools.base import Tool, error_envelope, make_tool, serialize_result
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)

PRUNE_TOOL_NAME = "prune"


async def _summarize(params: dict[str, str]) -> str:
    return f"The message history has been pruned. Here are the key points:\n{params['content']}"


def _make_prune_tool() -> Tool:
    return make_tool(
        name=PRUNE_TOOL_NAME,
        description="Prune the message history and keep only the key information",
        input_schema={
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "Key points of the conversation so far",
                },
            },
            "required": ["content"],
        },
        handler=_summarize,
    )


@dataclass
class PruneTool:
    """Truncates history back to the seed messages and appends a summary.

    The summary becomes a single system message. Every prune cuts back to the
    seed, so an earlier summary is replaced rather than stacked. Invalid
    arguments leave history untouched and are answered like any other tool.
    """

    seed_length: int
    tool: Tool = field(default_factory=_make_prune_tool)

    @property
    def definition(self) -> ToolDeclaration:
        return self.tool.definition

    async def __call__(self, messages: list[ChatMessage], call_id: str, arguments: str) -> str:
        try:
            summary = await self.tool.call(arguments)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Prune rejected: {e}")
            result = error_envelope(e)
            messages.append(ChatMessage(role="tool", content=result, tool_call_id=call_id))
            return result

        dropped = len(messages) - self.seed_length
        del messages[self.seed_length :]
        messages.append(ChatMessage(role="system", content=summary))
        logger.info(f"Pruned {dropped} messages from history")
        return serialize_result(summary)
