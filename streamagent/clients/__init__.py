"""Streaming chat-completion providers."""

from streamagent.clients.base import ChatCompletionProvider, ProviderError


def get_provider(name: str) -> ChatCompletionProvider:
    """Get the shared provider instance registered under ``name``."""
    if name == "openai":
        from streamagent.clients.openai import get_openai_provider

        return get_openai_provider()
    if name == "anthropic":
        from streamagent.clients.anthropic import get_anthropic_provider

        return get_anthropic_provider()
    raise ValueError(f"Unknown provider: {name}")


__all__ = ["ChatCompletionProvider", "ProviderError", "get_provider"]
