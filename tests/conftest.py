"""Shared fixtures: a scripted provider that replays canned stream frames."""

from collections.abc import AsyncIterator
from typing import Any

import pytest

from streamagent.models.llm import CompletionRequest, StreamFrame


class ScriptedProvider:
    """Replays one list of frames per iteration and records every request."""

    def __init__(self, iterations: list[list[dict[str, Any]]], repeat_last: bool = False):
        self.iterations = [[StreamFrame.model_validate(frame) for frame in frames] for frames in iterations]
        self.repeat_last = repeat_last
        self.requests: list[CompletionRequest] = []

    async def stream_chat(self, request: CompletionRequest) -> AsyncIterator[StreamFrame]:
        self.requests.append(request)
        index = len(self.requests) - 1
        if index >= len(self.iterations):
            if not self.repeat_last:
                raise AssertionError("Scripted completions exhausted")
            index = len(self.iterations) - 1
        for frame in self.iterations[index]:
            yield frame


def tool_call_frame(call_id: str | None, name: str | None, arguments: str | None, index: int = 0) -> dict[str, Any]:
    """Build a frame carrying a single tool-call fragment."""
    function: dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    fragment: dict[str, Any] = {"index": index, "function": function}
    if call_id is not None:
        fragment["id"] = call_id
    return {"content": "", "tool_calls": [fragment]}


def text_frame(content: str) -> dict[str, Any]:
    return {"content": content, "tool_calls": []}


@pytest.fixture
def scripted_provider():
    """Factory for scripted providers."""
    return ScriptedProvider


@pytest.fixture
def frames():
    """Frame builders, exposed as a namespace."""

    class Frames:
        tool_call = staticmethod(tool_call_frame)
        text = staticmethod(text_frame)

    return Frames
