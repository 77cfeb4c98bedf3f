"""Shared IRC data models."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from ..constants import CHANNEL_PREFIXES

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection

_NUMERIC_RE = re.compile(r"^\d{3}$")


class Action(str, Enum):
    """Listener keys understood by the registry.

    ``NUMERIC`` is a bucket that receives every 3-digit reply; listeners
    may also be registered for one specific code such as ``"353"``.
    """

    PRIVMSG = "PRIVMSG"
    NOTICE = "NOTICE"
    JOIN = "JOIN"
    PART = "PART"
    KICK = "KICK"
    QUIT = "QUIT"
    NICK = "NICK"
    MODE = "MODE"
    TOPIC = "TOPIC"
    INVITE = "INVITE"
    PING = "PING"
    PONG = "PONG"
    ERROR = "ERROR"
    NUMERIC = "NUMERIC"

    def __str__(self) -> str:
        return self.value


def is_numeric(action: str) -> bool:
    return bool(_NUMERIC_RE.match(action))


def is_channel_name(name: str | None) -> bool:
    return bool(name) and name[0] in CHANNEL_PREFIXES  # type: ignore[index]


class NamedTarget(Protocol):
    """Anything a message can be addressed to: a ``Channel`` or a
    ``DirectMessageTarget``."""

    @property
    def name(self) -> str: ...


@dataclass(slots=True)
class Member:
    name: str
    op: bool = False
    voice: bool = False


@dataclass
class Channel:
    """A channel tracked by one connection, with its member entries."""

    name: str
    members: dict[str, Member] = field(default_factory=dict)

    def __contains__(self, nick: object) -> bool:
        return nick in self.members

    def add_member(self, member: Member) -> Member:
        self.members[member.name] = member
        return member

    def remove_member(self, nick: str) -> Member | None:
        return self.members.pop(nick, None)

    def rename_member(self, old: str, new: str) -> Member | None:
        member = self.members.pop(old, None)
        if member is None:
            return None
        member.name = new
        self.members[new] = member
        return member


@dataclass(frozen=True, slots=True)
class DirectMessageTarget:
    """Ephemeral reply target for direct messages and untracked channels.

    Never stored in a connection's channel registry.
    """

    name: str


@dataclass(eq=False)
class Event:
    """One parsed record.

    Fields valid for every action: ``server``, ``raw``, ``tags``, the sender
    fields (``nick``/``ident``/``host``, ``user``), ``action``, ``args``,
    ``message`` and ``params``. The rest depend on the action:

    - ``channel_name``/``channel``: PRIVMSG and NOTICE to a channel, JOIN,
      PART, TOPIC, KICK, MODE and classified numerics. ``channel`` is the
      registry ``Channel`` when tracked, else a ``DirectMessageTarget``.
    - ``channels``: QUIT and NICK (``multi_channel`` is set), every tracked
      channel the sender was in.
    - ``target_user``: KICK.
    - ``new_nick``: NICK.
    - ``mode_changes``/``target_users``: MODE.
    - ``member``: JOIN of another user, once the state tracker has run.
    """

    connection: Connection = field(repr=False)
    server: str
    raw: str
    action: str
    args: list[str] = field(default_factory=list)
    message: str | None = None
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    nick: str | None = None
    ident: str | None = None
    host: str | None = None
    user: str | None = None
    member: Member | None = None
    channel_name: str | None = None
    channel: NamedTarget | None = None
    channels: list[Channel] = field(default_factory=list)
    multi_channel: bool = False
    target_user: str | None = None
    new_nick: str | None = None
    mode_changes: str | None = None
    target_users: list[str] = field(default_factory=list)

    @property
    def is_numeric(self) -> bool:
        return is_numeric(self.action)

    @property
    def is_direct(self) -> bool:
        """True for messages addressed to the bot rather than to a channel."""
        if not isinstance(self.channel, DirectMessageTarget):
            return False
        return self.channel_name is None or self.channel_name == self.connection.nick

    def reply(self, text: str) -> None:
        """Answer in the event's channel, or to the sender of a direct message."""
        target = self.channel.name if self.channel is not None else self.user
        if not target:
            raise ValueError(f"{self.action} event has no reply target")
        self.connection.privmsg(target, text)
