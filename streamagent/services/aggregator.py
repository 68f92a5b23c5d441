"""Reassembles streamed tool-call fragments into complete requests."""

from collections.abc import Iterable
from dataclasses import dataclass

from streamagent.models.chunks import ToolCallRequest
from streamagent.models.llm import ToolCallDelta
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PendingToolCall:
    """A tool call whose name/arguments may still be growing."""

    id: str
    name: str = ""
    arguments: str = ""


def accumulate_tool_calls(
    pending: dict[int, PendingToolCall], fragments: Iterable[ToolCallDelta]
) -> dict[int, PendingToolCall]:
    """Fold fragments into the pending calls, keyed by stream index.

    A fragment with an id starts a fresh call at its index, replacing whatever
    was there. A fragment without an id appends its name and argument text to
    the call already at its index, or is dropped if there is none. Argument
    text is never parsed here.
    """
    for fragment in fragments:
        name = fragment.function.name if fragment.function and fragment.function.name else ""
        arguments = fragment.function.arguments if fragment.function and fragment.function.arguments else ""

        if fragment.id:
            pending[fragment.index] = PendingToolCall(id=fragment.id, name=name, arguments=arguments)
        elif fragment.index in pending:
            call = pending[fragment.index]
            call.name += name
            call.arguments += arguments
        else:
            logger.debug(f"Dropping tool call fragment for unknown index {fragment.index}")
    return pending


def finalize_tool_calls(pending: dict[int, PendingToolCall]) -> list[ToolCallRequest]:
    """Turn pending calls into requests, in index order."""
    return [
        ToolCallRequest(id=call.id, name=call.name, arguments=call.arguments)
        for _, call in sorted(pending.items())
    ]


class ToolCallAccumulator:
    """Collects the tool calls of a single streamed completion."""

    def __init__(self) -> None:
        self.pending: dict[int, PendingToolCall] = {}

    def accumulate(self, fragments: Iterable[ToolCallDelta]) -> None:
        accumulate_tool_calls(self.pending, fragments)

    def finalize(self) -> list[ToolCallRequest]:
        return finalize_tool_calls(self.pending)
