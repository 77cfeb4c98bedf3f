"""Asyncio IRC bot protocol engine."""

from .bot.core import Bot  # noqa: F401
from .config.model import BotConfig, ConnectionConfig  # noqa: F401
from .irc.models import Action, Channel, DirectMessageTarget, Event, Member  # noqa: F401

__version__ = "1.0.0"

__all__ = [
    "Action",
    "Bot",
    "BotConfig",
    "Channel",
    "ConnectionConfig",
    "DirectMessageTarget",
    "Event",
    "Member",
    "__version__",
]
