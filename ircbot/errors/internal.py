"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the engine's public
surface. Faults raised *inside* the read path (malformed records,
listener and hook faults) are logged and swallowed by the dispatcher and
never reach the caller; the classes below are for operations a caller
invokes directly.

Classes:
  IRCError                 – Base for all engine errors.
  NetworkError             – Transport could not be established or was lost.
  ConfigError              – Configuration file missing or invalid.
  ConnectionNotFoundError  – Outbound command addressed to an unknown server.
  UnknownActionError       – Listener registered for an unsupported action.
  RegistryLockedError      – Listener removal attempted while connections are live.
  ModeParseError           – MODE change string malformed or its parameters unpaired.
"""

from __future__ import annotations

from collections.abc import Mapping


class IRCError(Exception):
    """Base class for all engine errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(IRCError):
    """Exception raised for network or transport layer errors.

    Raised once connection attempts are exhausted; a live connection that
    drops simply stops producing events.
    """


class ConfigError(IRCError):
    """Exception raised when configuration cannot be loaded or validated."""


class ConnectionNotFoundError(IRCError, KeyError):
    """Exception raised when a server name has no registered connection."""

    def __str__(self) -> str:  # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ""


class UnknownActionError(IRCError, ValueError):
    """Exception raised when a listener key is neither an Action nor a numeric."""


class RegistryLockedError(IRCError):
    """Exception raised when the listener registry is modified while live.

    Registration is append-only once a connection is producing events;
    removal is only allowed before connecting or after shutdown.
    """


class ModeParseError(IRCError, ValueError):
    """Exception raised when a MODE change string cannot be applied."""


__all__ = [
    "IRCError",
    "NetworkError",
    "ConfigError",
    "ConnectionNotFoundError",
    "UnknownActionError",
    "RegistryLockedError",
    "ModeParseError",
]
