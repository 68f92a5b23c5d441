"""Agent configuration."""

import os
from dataclasses import dataclass

from streamagent.prompts import DEFAULT_SYSTEM_PROMPT

DEFAULT_MAX_ITERATIONS = 10
DEFAULT_MODEL = "gpt-4o"


@dataclass
class AgentConfig:
    """Configuration for an agent loop."""

    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    provider: str = "openai"

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Build a config from STREAMAGENT_* environment variables."""
        return cls(
            model=os.getenv("STREAMAGENT_MODEL", DEFAULT_MODEL),
            max_iterations=int(os.getenv("STREAMAGENT_MAX_ITERATIONS", str(DEFAULT_MAX_ITERATIONS))),
            provider=os.getenv("STREAMAGENT_PROVIDER", "openai"),
        )
