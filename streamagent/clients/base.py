"""Provider boundary for streaming chat completions."""

from collections.abc import AsyncIterator
from typing import Protocol

from streamagent.models.llm import CompletionRequest, StreamFrame


class ChatCompletionProvider(Protocol):
    """Anything that can stream a chat completion as frames."""

    def stream_chat(self, request: CompletionRequest) -> AsyncIterator[StreamFrame]:
        """Open a streaming completion and yield its frames in arrival order."""
        ...


class ProviderError(Exception):
    """Raised when a provider request fails."""

    def __init__(self, message: str, provider: str, original_error: Exception | None = None):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error
