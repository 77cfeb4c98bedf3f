from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    ConfigError,
    IRCError,
    ModeParseError,
    NetworkError,
)


def categorize_error(error: BaseException) -> str:
    """Map an exception onto an aggregation category."""
    if isinstance(error, NetworkError | OSError | ConnectionError | TimeoutError):
        return "network"
    if isinstance(error, ConfigError):
        return "config"
    if isinstance(error, ModeParseError):
        return "parsing"
    if isinstance(error, IRCError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict[str, object] | None = None,
    *,
    error_type: str | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        error_type: Explicit category, overrides the exception-based guess.
        level: Logging level.
    """
    log_structured_error(
        error_type or categorize_error(error),
        f"{message}: {error}",
        error,
        context,
        level=level,
    )
