"""Logging configuration."""

import logging
import os
import sys

from pydantic import BaseModel, Field, field_validator

PACKAGE_LOGGER = "streamagent"


class LogConfig(BaseModel):
    """Logging configuration.

    ``level`` applies to the root handler and to every ``streamagent.*`` logger.
    Provider SDK and HTTP loggers listed in ``quiet`` are held at WARNING.
    """

    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"), validate_default=True)
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%H:%M:%S"
    quiet: tuple[str, ...] = ("anthropic", "httpx", "httpcore", "uvicorn.access")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure the root handler on stderr and apply ``config`` levels."""
    config = config or LogConfig()

    logging.basicConfig(
        level=config.level,
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(config.level)

    for name in config.quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)
        level: Explicit level; otherwise the level is inherited from the
            ``streamagent`` logger

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger
