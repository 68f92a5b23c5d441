"""Streaming client for OpenAI-compatible chat-completions endpoints."""

import json
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx

from streamagent.clients.base import ProviderError
from streamagent.models.llm import CompletionRequest, StreamFrame
from streamagent.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class OpenAIConfig:
    """Configuration for an OpenAI-compatible endpoint."""

    base_url: str = "https://api.openai.com/v1"
    timeout: float = 60.0
    organization: str | None = None


def decode_frame(event: dict[str, Any]) -> StreamFrame | None:
    """Turn one decoded SSE event into a frame; ``None`` if it has no choices."""
    choices = event.get("choices") or []
    if not choices:
        return None
    choice = choices[0]
    delta = choice.get("delta") or {}
    return StreamFrame(
        content=delta.get("content"),
        tool_calls=delta.get("tool_calls") or [],
        finish_reason=choice.get("finish_reason"),
    )


class OpenAIProvider:
    """Streams chat completions over server-sent events."""

    def __init__(
        self,
        api_key: str | None = None,
        config: OpenAIConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: API key (defaults to OPENAI_API_KEY env var)
            config: Endpoint configuration
            transport: Custom httpx transport, mainly for tests
        """
        openai_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")

        self.config = config or OpenAIConfig(base_url=os.getenv("OPENAI_BASE_URL", OpenAIConfig.base_url))
        headers = {"Authorization": f"Bearer {openai_api_key}"}
        if self.config.organization:
            headers["OpenAI-Organization"] = self.config.organization

        self.client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=headers,
            timeout=self.config.timeout,
            transport=transport,
        )

    def _build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": [message.to_wire() for message in request.messages],
            "stream": True,
        }
        if request.tools:
            payload["tools"] = [tool.model_dump() for tool in request.tools]
            payload["tool_choice"] = request.tool_choice
            payload["parallel_tool_calls"] = request.parallel_tool_calls
        return payload

    async def stream_chat(self, request: CompletionRequest) -> AsyncIterator[StreamFrame]:
        """Stream a completion.

        Raises:
            ProviderError: If the endpoint answers with an error status or the
                connection fails
        """
        payload = self._build_payload(request)
        logger.debug(f"Streaming completion with {len(request.messages)} messages, {len(request.tools)} tools")

        try:
            async with self.client.stream("POST", "/chat/completions", json=payload) as response:
                if response.is_error:
                    body = (await response.aread()).decode(errors="replace")
                    raise ProviderError(
                        f"OpenAI streaming request failed with {response.status_code}: {body}",
                        provider="openai",
                    )

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:") :].strip()
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping malformed stream event: {data[:100]}")
                        continue

                    frame = decode_frame(event)
                    if frame is not None:
                        yield frame

        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI streaming request failed: {e}", provider="openai", original_error=e) from e

    async def aclose(self) -> None:
        await self.client.aclose()


_openai_provider: OpenAIProvider | None = None


def get_openai_provider() -> OpenAIProvider:
    """Get or create the OpenAI provider instance."""
    global _openai_provider
    if _openai_provider is None:
        _openai_provider = OpenAIProvider()
    return _openai_provider
