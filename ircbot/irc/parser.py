"""IRC record parsing: one raw record in, one Event out."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ..constants import TRAILING_BOUNDARY
from ..logs.logger import logger
from .models import Action, DirectMessageTarget, Event, is_channel_name, is_numeric
from .numerics import NUMERIC_TARGETS
from .tokenizer import LineTokenizer

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection

_PREFIX_RE = re.compile(r"^([^!@\s]+)!([^@\s]+)@(\S+)$")

_DIRECT_CAPABLE = {Action.PRIVMSG.value, Action.NOTICE.value}


def parse_record(connection: Connection, record: str) -> Event | None:
    """Build the Event for ``record`` (terminator already stripped).

    Reads the connection's channel registry to resolve targets but never
    mutates it. Returns ``None`` for records without an action token.
    """
    scanner = LineTokenizer(record)

    tags: dict[str, str] = {}
    if record.startswith("@"):
        section = scanner.tokenize(" ")
        if section is None:
            return _malformed(connection, record)
        tags = _parse_tags(section[1:])

    nick = ident = host = None
    if scanner.pending.startswith(":"):
        prefix = scanner.tokenize(" ")
        if prefix is None:
            return _malformed(connection, record)
        nick, ident, host = _parse_prefix(prefix[1:])

    head = scanner.tokenize(TRAILING_BOUNDARY)
    if head is None:
        head = scanner.tokenize(None) or ""
        message = None
    else:
        message = scanner.tokenize(None)

    tokens = [token for token in head.split(" ") if token]
    if not tokens or not (tokens[0].isalpha() or is_numeric(tokens[0])):
        return _malformed(connection, record)

    event = Event(
        connection=connection,
        server=connection.name,
        raw=record,
        action=tokens[0],
        args=tokens[1:],
        message=message,
        params=message.split(" ") if message else [],
        tags=tags,
        nick=nick,
        ident=ident,
        host=host,
        user=nick,
    )
    if event.is_numeric:
        _classify_numeric(event)
    else:
        _classify_command(event)
    _resolve_channel(connection, event)
    return event


def _malformed(connection: Connection, record: str) -> None:
    logger.log_event(
        "irc",
        "malformed_record",
        level=logging.DEBUG,
        server=connection.name,
        raw=record,
    )
    return None


def _parse_prefix(prefix: str) -> tuple[str | None, str | None, str | None]:
    match = _PREFIX_RE.match(prefix)
    if match:
        return match.group(1), match.group(2), match.group(3)
    return None, None, prefix


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = v
    return tags


def _arg(event: Event, pos: int | None) -> str | None:
    if pos is None or pos >= len(event.args):
        return None
    return event.args[pos]


def _classify_numeric(event: Event) -> None:
    targets = NUMERIC_TARGETS.get(event.action)
    if targets is None:
        return
    user = _arg(event, targets.user)
    if user is not None:
        event.user = user
    channel = _arg(event, targets.channel)
    if channel is not None:
        event.channel_name = channel
    ambiguous = _arg(event, targets.ambiguous)
    if ambiguous is not None:
        if is_channel_name(ambiguous):
            event.channel_name = ambiguous
        else:
            event.user = ambiguous


def _classify_command(event: Event) -> None:  # noqa: C901
    action = event.action
    if action in _DIRECT_CAPABLE:
        target = _arg(event, 0)
        if is_channel_name(target):
            event.channel_name = target
    elif action == Action.JOIN:
        # Some servers send the channel as trailing text: "JOIN :#chan"
        event.channel_name = _arg(event, 0) or event.message
    elif action in (Action.PART, Action.TOPIC):
        event.channel_name = _arg(event, 0)
    elif action == Action.KICK:
        event.channel_name = _arg(event, 0)
        event.target_user = _arg(event, 1)
    elif action == Action.NICK:
        event.new_nick = _arg(event, 0) or event.message
        event.multi_channel = True
    elif action == Action.MODE:
        event.channel_name = _arg(event, 0)
        event.mode_changes = _arg(event, 1) or (
            event.message if len(event.args) < 2 else None
        )
        event.target_users = event.args[2:]
        if len(event.args) >= 2 and event.message:
            # ":srv MODE #chan +o :alice" carries the last target as trailing
            event.target_users += event.message.split()
    elif action == Action.QUIT:
        event.multi_channel = True


def _resolve_channel(connection: Connection, event: Event) -> None:
    if event.multi_channel:
        event.channels = connection.channels_with(event.user) if event.user else []
        return
    name = event.channel_name
    if name is None:
        if event.action in _DIRECT_CAPABLE and event.user:
            event.channel = DirectMessageTarget(event.user)
        return
    if name == connection.nick:
        event.channel = DirectMessageTarget(event.user or name)
        return
    tracked = connection.channels.get(name)
    event.channel = tracked if tracked is not None else DirectMessageTarget(name)
