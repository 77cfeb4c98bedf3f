"""IRC protocol engine: framing, parsing, dispatch and state tracking."""

from .connection import Connection, ConnectionState  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .ignores import IgnoreTable  # noqa: F401
from .models import Action, Channel, DirectMessageTarget, Event, Member  # noqa: F401
from .parser import parse_record  # noqa: F401
from .registry import Listener, ListenerRegistry  # noqa: F401
from .tokenizer import LineTokenizer  # noqa: F401
from .tracker import STATE_TAG, StateTracker  # noqa: F401

__all__ = [
    "Action",
    "Channel",
    "Connection",
    "ConnectionState",
    "DirectMessageTarget",
    "Event",
    "IRCDispatcher",
    "IgnoreTable",
    "LineTokenizer",
    "Listener",
    "ListenerRegistry",
    "Member",
    "STATE_TAG",
    "StateTracker",
    "parse_record",
]
