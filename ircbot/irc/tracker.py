"""Built-in listeners that keep each connection's channel registry current."""

from __future__ import annotations

import logging
import re

from ..constants import ROLE_PREFIXES
from ..errors.internal import ModeParseError
from ..logs.logger import logger
from .commands import ctcp, parse_ctcp
from .models import Action, Channel, Event, Member
from .numerics import RPL_NAMREPLY
from .registry import ListenerRegistry

STATE_TAG = "core.state"

_MODE_RUN_RE = re.compile(r"([+-])([^+-]*)")
_MEMBER_FLAGS = {"o": "op", "v": "voice"}
# Channel modes taking a parameter when set and unset, and only when set.
_PARAM_MODES = "qaohvbeIk"
_PARAM_ON_SET = "l"


def parse_mode_runs(mode_changes: str) -> list[tuple[bool, str]]:
    """Split ``"+o-v"`` / ``"+ov"`` into ``[(adding, flags), ...]``.

    Raises ModeParseError when the string is empty, does not start with a
    sign, or contains a sign with no flags after it.
    """
    if not mode_changes or mode_changes[0] not in "+-":
        raise ModeParseError(f"mode change {mode_changes!r} is not sign-prefixed")
    runs = [(sign == "+", flags) for sign, flags in _MODE_RUN_RE.findall(mode_changes)]
    if any(not flags for _, flags in runs):
        raise ModeParseError(f"mode change {mode_changes!r} has an empty run")
    return runs


def pair_mode_targets(
    mode_changes: str, targets: list[str]
) -> list[tuple[bool, str, str | None]]:
    """Expand a MODE change into ``[(adding, flag, target), ...]``.

    Flags that take a parameter consume ``targets`` left to right, so
    ``+oo alice bob`` and ``+ov alice bob`` pair one flag with each nick.
    Raises ModeParseError when the string is malformed or the number of
    parameterized flags differs from the number of targets.
    """
    pending = list(targets)
    changes: list[tuple[bool, str, str | None]] = []
    for adding, flags in parse_mode_runs(mode_changes):
        for flag in flags:
            if flag not in _PARAM_MODES and not (adding and flag in _PARAM_ON_SET):
                changes.append((adding, flag, None))
                continue
            if not pending:
                raise ModeParseError(
                    f"mode change {mode_changes!r} needs more than {len(targets)} targets"
                )
            changes.append((adding, flag, pending.pop(0)))
    if pending:
        raise ModeParseError(
            f"mode change {mode_changes!r} leaves {len(pending)} targets unpaired"
        )
    return changes


def split_role_prefix(token: str) -> tuple[str, str]:
    """Return ``(prefixes, nick)`` for a NAMES token such as ``"@+alice"``."""
    nick = token.lstrip(ROLE_PREFIXES)
    return token[: len(token) - len(nick)], nick


class StateTracker:
    """Mutates ``event.connection.channels`` in response to events.

    Installed ahead of every other listener so application code always
    observes the post-event state.
    """

    def install(self, registry: ListenerRegistry) -> None:
        registry.add(Action.JOIN, STATE_TAG, self.on_join)
        registry.add(Action.PART, STATE_TAG, self.on_part)
        registry.add(Action.KICK, STATE_TAG, self.on_kick)
        registry.add(Action.QUIT, STATE_TAG, self.on_quit)
        registry.add(Action.NICK, STATE_TAG, self.on_nick)
        registry.add(Action.MODE, STATE_TAG, self.on_mode)
        registry.add(RPL_NAMREPLY, STATE_TAG, self.on_names)
        registry.add(Action.PING, STATE_TAG, self.on_ping)
        registry.add(Action.PRIVMSG, STATE_TAG, self.on_ctcp_ping)

    def on_join(self, event: Event) -> None:
        name = event.channel_name
        if not name:
            return
        channel = event.channel = self._ensure_channel(event, name)
        if event.user and event.user != event.connection.nick:
            event.member = channel.add_member(Member(event.user))
            logger.log_event(
                "state",
                "member_joined",
                level=logging.DEBUG,
                server=event.server,
                channel=name,
                nick=event.user,
            )

    @staticmethod
    def _ensure_channel(event: Event, name: str) -> Channel:
        channels = event.connection.channels
        channel = channels.get(name)
        if channel is None:
            channel = channels[name] = Channel(name)
            logger.log_event(
                "state", "channel_created", server=event.server, channel=name
            )
        return channel

    def on_part(self, event: Event) -> None:
        self._depart(event, event.user)

    def on_kick(self, event: Event) -> None:
        self._depart(event, event.target_user)

    def _depart(self, event: Event, nick: str | None) -> None:
        name = event.channel_name
        connection = event.connection
        if not name or not nick or name not in connection.channels:
            return
        if nick == connection.nick:
            del connection.channels[name]
            logger.log_event(
                "state", "channel_removed", server=event.server, channel=name
            )
            return
        if connection.channels[name].remove_member(nick) is not None:
            logger.log_event(
                "state",
                "member_left",
                level=logging.DEBUG,
                server=event.server,
                channel=name,
                nick=nick,
            )

    def on_quit(self, event: Event) -> None:
        if not event.user:
            return
        for channel in event.connection.channels.values():
            channel.remove_member(event.user)

    def on_nick(self, event: Event) -> None:
        old, new = event.user, event.new_nick
        if not old or not new:
            return
        connection = event.connection
        if old == connection.nick:
            connection.nick = new
            logger.log_event(
                "state", "nick_changed", server=event.server, old=old, new=new
            )
        # NAMES lists the bot too, so its own entries are renamed as well.
        for channel in connection.channels.values():
            channel.rename_member(old, new)
        logger.log_event(
            "state",
            "member_renamed",
            level=logging.DEBUG,
            server=event.server,
            old=old,
            new=new,
        )

    def on_mode(self, event: Event) -> None:
        channel = event.connection.channels.get(event.channel_name or "")
        if channel is None or event.mode_changes is None:
            return  # user modes or untracked channels carry no member state
        try:
            changes = pair_mode_targets(event.mode_changes, event.target_users)
        except ModeParseError as e:
            self._reject_mode(event, str(e))
            return
        for adding, flag, target in changes:
            attribute = _MEMBER_FLAGS.get(flag)
            if attribute is None or target is None:
                continue
            member = channel.members.get(target)
            if member is not None:
                setattr(member, attribute, adding)

    @staticmethod
    def _reject_mode(event: Event, reason: str) -> None:
        logger.log_event(
            "state",
            "mode_rejected",
            level=logging.WARNING,
            server=event.server,
            channel=event.channel_name,
            modes=event.mode_changes,
            reason=reason,
        )

    def on_names(self, event: Event) -> None:
        name = event.channel_name
        if not name:
            return
        channel = event.channel = self._ensure_channel(event, name)
        for token in event.params:
            prefixes, nick = split_role_prefix(token)
            if not nick:
                continue
            channel.add_member(Member(nick, op="@" in prefixes, voice="+" in prefixes))
        logger.log_event(
            "state",
            "names_applied",
            level=logging.DEBUG,
            server=event.server,
            channel=name,
            count=len(channel.members),
        )

    def on_ping(self, event: Event) -> None:
        token = event.message if event.message is not None else " ".join(event.args)
        event.connection.pong(token)

    def on_ctcp_ping(self, event: Event) -> None:
        if event.channel_name is not None or not event.user:
            return
        request = parse_ctcp(event.message)
        if request is None or request[0] != "PING":
            return
        event.connection.notice(event.user, ctcp("PING", request[1]))
