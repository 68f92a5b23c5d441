"""Tests for the Anthropic streaming provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from anthropic import InternalServerError, RateLimitError

from streamagent.clients.anthropic import (
    AnthropicConfig,
    AnthropicProvider,
    _StreamState,
    convert_messages,
    decode_event,
)
from streamagent.clients.base import ProviderError
from streamagent.models.llm import (
    ChatMessage,
    CompletionRequest,
    FunctionCall,
    FunctionDefinition,
    ToolCallRecord,
    ToolDeclaration,
)
from streamagent.services.aggregator import ToolCallAccumulator


def _block_start(index: int, block_type: str = "text", **fields):
    return SimpleNamespace(type="content_block_start", index=index, content_block=SimpleNamespace(type=block_type, **fields))


def _text_delta(index: int, text: str):
    return SimpleNamespace(type="content_block_delta", index=index, delta=SimpleNamespace(type="text_delta", text=text))


def _json_delta(index: int, partial_json: str):
    return SimpleNamespace(
        type="content_block_delta", index=index, delta=SimpleNamespace(type="input_json_delta", partial_json=partial_json)
    )


def _block_stop(index: int):
    return SimpleNamespace(type="content_block_stop", index=index)


def _message_delta(stop_reason: str):
    return SimpleNamespace(type="message_delta", delta=SimpleNamespace(stop_reason=stop_reason))


async def _events(*events):
    for event in events:
        yield event


class _NoopRateLimiter:
    def __init__(self):
        self.calls = []

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        self.calls.append(estimated_tokens)


def _status_error(error_class, status_code: int, headers: dict | None = None):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status_code, request=request, headers=headers or {})
    return error_class("boom", response=response, body=None)


@pytest.fixture
def no_tokenizer(monkeypatch):
    def unavailable(model_name):
        raise KeyError(model_name)

    monkeypatch.setattr("streamagent.clients.anthropic.tiktoken.encoding_for_model", unavailable)


def _provider(create: AsyncMock, **config) -> AnthropicProvider:
    client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return AnthropicProvider(
        client=client,
        config=AnthropicConfig(retry_delay=0, **config),
        rate_limiter=_NoopRateLimiter(),
    )


def _request(**overrides) -> CompletionRequest:
    fields = {
        "model": "claude-sonnet-4-20250514",
        "messages": [ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="hi")],
        "tools": [
            ToolDeclaration(
                function=FunctionDefinition(name="echo", description="Echo", parameters={"type": "object", "properties": {}})
            )
        ],
    }
    fields.update(overrides)
    return CompletionRequest(**fields)


class TestConvertMessages:
    """Tests for history conversion."""

    def test_system_messages_join(self):
        """Test that system messages and prune summaries become the system prompt."""
        system, messages = convert_messages(
            [
                ChatMessage(role="system", content="sys"),
                ChatMessage(role="user", content="hi"),
                ChatMessage(role="system", content="summary"),
            ]
        )

        assert system == "sys\n\nsummary"
        assert messages == [{"role": "user", "content": "hi"}]

    def test_tool_calls_and_results(self):
        """Test assistant tool calls and grouped tool results."""
        _, messages = convert_messages(
            [
                ChatMessage(role="user", content="hi"),
                ChatMessage(
                    role="assistant",
                    content="Checking",
                    tool_calls=[
                        ToolCallRecord(id="a", function=FunctionCall(name="echo", arguments='{"x": 1}')),
                        ToolCallRecord(id="b", function=FunctionCall(name="echo", arguments="{bad")),
                    ],
                ),
                ChatMessage(role="tool", content='"1"', tool_call_id="a"),
                ChatMessage(role="tool", content='"2"', tool_call_id="b"),
            ]
        )

        assert messages[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Checking"},
                {"type": "tool_use", "id": "a", "name": "echo", "input": {"x": 1}},
                {"type": "tool_use", "id": "b", "name": "echo", "input": {}},
            ],
        }
        assert messages[2] == {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "a", "content": '"1"'},
                {"type": "tool_result", "tool_use_id": "b", "content": '"2"'},
            ],
        }

    def test_empty_assistant_dropped(self):
        """Test that an assistant message with no content or calls is skipped."""
        _, messages = convert_messages([ChatMessage(role="user", content="hi"), ChatMessage(role="assistant")])

        assert messages == [{"role": "user", "content": "hi"}]


class TestDecodeEvent:
    """Tests for stream event translation."""

    def test_text(self):
        """Test a text delta."""
        assert decode_event(_text_delta(0, "Hello"), _StreamState()).content == "Hello"

    def test_tool_use_stream(self):
        """Test that tool-use blocks accumulate into a complete request."""
        state = _StreamState()
        accumulator = ToolCallAccumulator()
        events = [
            _block_start(0),
            _text_delta(0, "Let me check"),
            _block_stop(0),
            _block_start(1, "tool_use", id="toolu_1", name="echo"),
            _json_delta(1, '{"x"'),
            _json_delta(1, ": 1}"),
            _block_stop(1),
            _message_delta("tool_use"),
        ]

        for event in events:
            frame = decode_event(event, state)
            if frame is not None:
                accumulator.accumulate(frame.tool_calls)

        [request] = accumulator.finalize()
        assert (request.id, request.name, request.arguments) == ("toolu_1", "echo", '{"x": 1}')

    def test_tool_without_input(self):
        """Test that a tool with no streamed input gets empty object arguments."""
        state = _StreamState()
        accumulator = ToolCallAccumulator()
        for event in [_block_start(0, "tool_use", id="toolu_1", name="ping"), _block_stop(0)]:
            accumulator.accumulate(decode_event(event, state).tool_calls)

        assert accumulator.finalize()[0].arguments == "{}"

    def test_parallel_tools_get_slots(self):
        """Test that each tool-use block gets its own slot in order."""
        state = _StreamState()
        first = decode_event(_block_start(1, "tool_use", id="a", name="one"), state)
        second = decode_event(_block_start(2, "tool_use", id="b", name="two"), state)

        assert first.tool_calls[0].index == 0
        assert second.tool_calls[0].index == 1

    def test_stop_reason(self):
        """Test that message_delta carries the stop reason."""
        assert decode_event(_message_delta("end_turn"), _StreamState()).finish_reason == "end_turn"

    def test_ignored_events(self):
        """Test that bookkeeping events yield nothing."""
        state = _StreamState()
        assert decode_event(SimpleNamespace(type="message_start"), state) is None
        assert decode_event(_block_stop(0), state) is None


class TestAnthropicProvider:
    """Tests for streaming through a fake SDK client."""

    @pytest.mark.asyncio
    async def test_stream_chat(self, no_tokenizer):
        """Test request parameters and emitted frames."""
        create = AsyncMock(return_value=_events(_text_delta(0, "Hi"), _message_delta("end_turn")))
        provider = _provider(create)

        frames = [frame async for frame in provider.stream_chat(_request())]

        assert [frame.content for frame in frames] == ["Hi", None]
        params = create.await_args.kwargs
        assert params["model"] == "claude-sonnet-4-20250514"
        assert params["system"] == "sys"
        assert params["messages"] == [{"role": "user", "content": "hi"}]
        assert params["stream"] is True
        assert params["tools"] == [
            {"name": "echo", "description": "Echo", "input_schema": {"type": "object", "properties": {}}}
        ]
        assert params["tool_choice"] == {"type": "auto", "disable_parallel_tool_use": False}
        assert provider.rate_limiter.calls[0] > 0

    @pytest.mark.asyncio
    async def test_configured_model_wins(self, no_tokenizer):
        """Test that a configured model overrides the request model."""
        create = AsyncMock(return_value=_events())
        provider = _provider(create, model="claude-haiku")

        [frame async for frame in provider.stream_chat(_request(tools=[]))]

        params = create.await_args.kwargs
        assert params["model"] == "claude-haiku"
        assert "tools" not in params

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, no_tokenizer):
        """Test that a 5xx is retried before the stream opens."""
        create = AsyncMock(side_effect=[_status_error(InternalServerError, 503), _events(_text_delta(0, "ok"))])
        provider = _provider(create)

        frames = [frame async for frame in provider.stream_chat(_request())]

        assert [frame.content for frame in frames] == ["ok"]
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_rate_limits(self, no_tokenizer):
        """Test that a 429 with a short retry-after is retried."""
        create = AsyncMock(
            side_effect=[_status_error(RateLimitError, 429, {"retry-after": "0"}), _events(_text_delta(0, "ok"))]
        )
        provider = _provider(create)

        frames = [frame async for frame in provider.stream_chat(_request())]

        assert [frame.content for frame in frames] == ["ok"]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, no_tokenizer):
        """Test that persistent server errors raise a provider error."""
        create = AsyncMock(side_effect=_status_error(InternalServerError, 500))
        provider = _provider(create, max_retries=2)

        with pytest.raises(ProviderError) as exc_info:
            [frame async for frame in provider.stream_chat(_request())]
        assert exc_info.value.provider == "anthropic"
        assert create.await_count == 2

    def test_requires_api_key(self, monkeypatch, no_tokenizer):
        """Test that a missing key is rejected."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            AnthropicProvider()

    def test_token_estimate_fallback(self, no_tokenizer):
        """Test the character-based estimate when no tokenizer is available."""
        provider = _provider(AsyncMock())

        assert provider.tokenizer is None
        assert provider._estimate_tokens("x" * 40, []) == 10
