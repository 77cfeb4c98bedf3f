"""Configuration package exports."""

from .loader import ConfigLoader, get_config_path, load_config  # noqa: F401
from .model import BotConfig, ConnectionConfig, ThrottleConfig  # noqa: F401

__all__ = [
    "BotConfig",
    "ConnectionConfig",
    "ThrottleConfig",
    "ConfigLoader",
    "get_config_path",
    "load_config",
]
