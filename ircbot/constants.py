"""
Configuration constants for the IRC bot engine

This module contains the tunables used throughout the library.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Wire format
RECORD_TERMINATOR = "\r\n"
TRAILING_BOUNDARY = " :"
CHANNEL_PREFIXES = "#&+!"
ROLE_PREFIXES = "~&@%+"
CTCP_DELIMITER = "\x01"
DEFAULT_ENCODING = "utf-8"

# Transport
DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)  # Plaintext IRC port
CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 15.0
)  # Seconds allowed for TCP/TLS establishment
CONNECT_MAX_ATTEMPTS = _get_env_int(
    "IRC_CONNECT_MAX_ATTEMPTS", 3
)  # Connection attempts before giving up
CONNECT_BACKOFF_MAX = _get_env_float(
    "IRC_CONNECT_BACKOFF_MAX", 30.0
)  # Upper bound for exponential connect backoff
IDLE_TIMEOUT = _get_env_float(
    "IRC_IDLE_TIMEOUT", 60 * 60.0
)  # Seconds without server data before the connection is dropped
KEEPALIVE_INTERVAL = _get_env_int(
    "IRC_KEEPALIVE_INTERVAL", 10
)  # TCP keepalive probe interval in seconds
READ_CHUNK_SIZE = _get_env_int("IRC_READ_CHUNK_SIZE", 4096)  # Bytes per socket read

# Dispatch
HOOK_TIMEOUT_SECONDS = _get_env_float(
    "IRC_HOOK_TIMEOUT_SECONDS", 5.0
)  # Upper bound for a single pre-emit hook

# Outbound throttling
THROTTLE_RATE = _get_env_float(
    "IRC_THROTTLE_RATE", 1.0
)  # Lines per second once the burst allowance is spent
THROTTLE_BURST = _get_env_int(
    "IRC_THROTTLE_BURST", 5
)  # Lines that may be sent back-to-back

# Identity
DEFAULT_SERVICE = "NickServ"
NICK_IN_USE_SUFFIX = "_"
