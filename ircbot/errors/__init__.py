"""Error hierarchy and reporting helpers."""

from .handling import categorize_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    ConfigError,
    ConnectionNotFoundError,
    IRCError,
    ModeParseError,
    NetworkError,
    RegistryLockedError,
    UnknownActionError,
)

__all__ = [
    "IRCError",
    "NetworkError",
    "ConfigError",
    "ConnectionNotFoundError",
    "UnknownActionError",
    "RegistryLockedError",
    "ModeParseError",
    "categorize_error",
    "log_error",
]
