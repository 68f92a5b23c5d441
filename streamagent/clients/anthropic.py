"""Anthropic streaming client with rate limiting and retries."""

import asyncio
import json
import os
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import tiktoken
from anthropic import APIError, AsyncAnthropic
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from streamagent.clients.base import ProviderError
from streamagent.models.llm import ChatMessage, CompletionRequest, FunctionDelta, StreamFrame, ToolCallDelta
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AnthropicConfig:
    """Configuration for the Anthropic provider."""

    model: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.1
    max_retries: int = 3
    retry_delay: float = 1.0


class AnthropicRateLimiter:
    """Moving-window limits on requests and estimated tokens."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def _wait_for(self, limit: Any, identifier: str, cost: int = 1) -> None:
        if self.limiter.hit(limit, identifier, cost=cost):
            return
        window_stats = self.limiter.get_window_stats(limit, identifier)
        wait_time = max(0.0, window_stats.reset_time - time.time())
        if wait_time > 0:
            logger.warning(f"Rate limit {limit} exceeded for {identifier}, waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        """Sleep until the request fits both the request and token windows."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")
        await self._wait_for(self.request_limit, identifier)
        await self._wait_for(self.token_limit, f"{identifier}_tokens", cost=max(1, estimated_tokens))


def convert_messages(messages: list[ChatMessage]) -> tuple[str, list[dict[str, Any]]]:
    """Split history into Anthropic's system prompt and message list.

    System messages, including prune summaries, are folded into the system
    prompt. Assistant tool calls become ``tool_use`` blocks and consecutive
    tool results are grouped into one user turn of ``tool_result`` blocks.
    """
    system_parts: list[str] = []
    converted: list[dict[str, Any]] = []

    for message in messages:
        if message.role == "system":
            system_parts.append(message.content)
        elif message.role == "tool":
            block = {"type": "tool_result", "tool_use_id": message.tool_call_id, "content": message.content}
            previous = converted[-1] if converted else None
            if previous and previous["role"] == "user" and isinstance(previous["content"], list):
                previous["content"].append(block)
            else:
                converted.append({"role": "user", "content": [block]})
        elif message.role == "assistant" and message.tool_calls:
            blocks: list[dict[str, Any]] = []
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls:
                try:
                    tool_input = json.loads(call.function.arguments) if call.function.arguments else {}
                except json.JSONDecodeError:
                    tool_input = {}
                blocks.append({"type": "tool_use", "id": call.id, "name": call.function.name, "input": tool_input})
            converted.append({"role": "assistant", "content": blocks})
        elif message.content:
            converted.append({"role": message.role, "content": message.content})

    return "\n\n".join(system_parts), converted


@dataclass
class _StreamState:
    """Maps Anthropic content-block indexes onto tool-call slots."""

    slots: dict[int, int] = field(default_factory=dict)
    streamed_input: set[int] = field(default_factory=set)

    def open_slot(self, block_index: int) -> int:
        slot = len(self.slots)
        self.slots[block_index] = slot
        return slot


def decode_event(event: Any, state: _StreamState) -> StreamFrame | None:
    """Translate one Anthropic stream event into a frame, if it carries one."""
    if event.type == "content_block_start" and event.content_block.type == "tool_use":
        slot = state.open_slot(event.index)
        block = event.content_block
        return StreamFrame(
            tool_calls=[ToolCallDelta(index=slot, id=block.id, function=FunctionDelta(name=block.name, arguments=""))]
        )

    if event.type == "content_block_delta":
        if event.delta.type == "text_delta":
            return StreamFrame(content=event.delta.text)
        if event.delta.type == "input_json_delta" and event.index in state.slots:
            if event.delta.partial_json:
                state.streamed_input.add(event.index)
            return StreamFrame(
                tool_calls=[
                    ToolCallDelta(
                        index=state.slots[event.index],
                        function=FunctionDelta(arguments=event.delta.partial_json),
                    )
                ]
            )

    # A tool without parameters streams no JSON at all
    if event.type == "content_block_stop" and event.index in state.slots and event.index not in state.streamed_input:
        return StreamFrame(
            tool_calls=[ToolCallDelta(index=state.slots[event.index], function=FunctionDelta(arguments="{}"))]
        )

    if event.type == "message_delta":
        return StreamFrame(finish_reason=event.delta.stop_reason)

    return None


class AnthropicProvider:
    """Streams Claude completions as provider-agnostic frames."""

    tokenizer: tiktoken.Encoding | None = None

    def __init__(
        self,
        api_key: str | None = None,
        config: AnthropicConfig | None = None,
        client: AsyncAnthropic | None = None,
        rate_limiter: AnthropicRateLimiter | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Provider configuration
            client: Preconfigured SDK client
            rate_limiter: Shared rate limiter
        """
        if client is None:
            anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
            if not anthropic_api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable is required")
            client = AsyncAnthropic(api_key=anthropic_api_key)

        self.client = client
        self.config = config or AnthropicConfig()
        self.rate_limiter = rate_limiter or AnthropicRateLimiter()

        try:
            # Close approximation for Claude
            self.tokenizer = tiktoken.encoding_for_model("gpt-4")
        except Exception:
            self.tokenizer = None

    async def stream_chat(self, request: CompletionRequest) -> AsyncIterator[StreamFrame]:
        """Stream a completion.

        Raises:
            ProviderError: If the request fails after retries
        """
        system_prompt, messages = convert_messages(request.messages)
        await self.rate_limiter.check_rate_limit(self._estimate_tokens(system_prompt, messages))

        params: dict[str, Any] = {
            "model": self.config.model or request.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": messages,
            "stream": True,
        }
        if system_prompt:
            params["system"] = system_prompt
        if request.tools:
            params["tools"] = [
                {
                    "name": tool.function.name,
                    "description": tool.function.description,
                    "input_schema": tool.function.parameters,
                }
                for tool in request.tools
            ]
            params["tool_choice"] = {
                "type": request.tool_choice if request.tool_choice != "required" else "any",
                "disable_parallel_tool_use": not request.parallel_tool_calls,
            }

        logger.debug(f"Opening Anthropic stream with model: {params['model']}")
        stream = await self._request_with_retries(lambda: self.client.messages.create(**params))

        state = _StreamState()
        try:
            async for event in stream:
                frame = decode_event(event, state)
                if frame is not None:
                    yield frame
        except APIError as e:
            raise ProviderError(f"Anthropic stream failed: {e}", provider="anthropic", original_error=e) from e

    async def _request_with_retries[T](self, call: Callable[[], Awaitable[T]]) -> T:
        """Open the request, retrying rate limits and server errors."""
        for attempt in range(self.config.max_retries):
            try:
                return await call()

            except APIError as e:
                status_code = getattr(e, "status_code", None)
                last_attempt = attempt >= self.config.max_retries - 1

                if status_code == 429 and not last_attempt:
                    retry_after = 60
                    response = getattr(e, "response", None)
                    if response is not None:
                        retry_after = int(response.headers.get("retry-after", 60))
                    if retry_after < 120:
                        logger.warning(f"Anthropic rate limited, retrying in {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue

                elif status_code is not None and status_code >= 500 and not last_attempt:
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue

                raise ProviderError(f"Anthropic request failed: {e}", provider="anthropic", original_error=e) from e

        raise ProviderError(
            f"Failed to complete request after {self.config.max_retries} attempts", provider="anthropic"
        )

    def _estimate_tokens(self, system_prompt: str, messages: list[dict[str, Any]]) -> int:
        """Estimate token count for rate limiting."""
        text_content = system_prompt + json.dumps(messages, ensure_ascii=False)
        try:
            return len(self.tokenizer.encode(text_content)) if self.tokenizer else len(text_content) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(text_content) // 4


_anthropic_provider: AnthropicProvider | None = None


def get_anthropic_provider() -> AnthropicProvider:
    """Get or create the Anthropic provider instance."""
    global _anthropic_provider
    if _anthropic_provider is None:
        _anthropic_provider = AnthropicProvider()
    return _anthropic_provider
