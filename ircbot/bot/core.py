"""Bot façade: connection registry, listener and ignore surface, outbound helpers."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from functools import partial
from typing import TYPE_CHECKING

from ..constants import HOOK_TIMEOUT_SECONDS
from ..errors.handling import log_error
from ..errors.internal import ConnectionNotFoundError
from ..irc.connection import Connection, ReadyCallback
from ..irc.dispatcher import Hook, IRCDispatcher
from ..irc.ignores import IgnoreTable
from ..irc.models import Action
from ..irc.registry import Handler, ListenerRegistry
from ..irc.tracker import STATE_TAG, StateTracker
from ..logs.logger import logger
from ..rate.throttle import TokenBucketThrottle
from .identity import IDENTITY_TAG, IdentityRegistrar

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import BotConfig, ConnectionConfig
    from ..irc.models import Event

RESERVED_TAGS = frozenset({STATE_TAG, IDENTITY_TAG})


class Bot:
    """An IRC bot holding any number of named server connections.

    Listeners and hooks are bot-wide and shared by every connection.
    Register them before connecting: once a connection is live the
    registry only accepts additions, and ``remove_listeners`` raises
    ``RegistryLockedError`` until every connection has stopped.

    Attributes:
        nick: Default nick for connections that do not configure one.
        connections: Connections by name.
        registry: Listener registry (built-ins installed first).
        ignores: Ignore table consulted on every dispatch.
        dispatcher: Hook and listener pipeline.
    """

    def __init__(
        self, nick: str, *, hook_timeout: float | None = HOOK_TIMEOUT_SECONDS
    ) -> None:
        self.nick = nick
        self.registry = ListenerRegistry()
        self.ignores = IgnoreTable()
        self.dispatcher = IRCDispatcher(self.registry, self.ignores, hook_timeout)
        self.tracker = StateTracker()
        self.identity = IdentityRegistrar()
        self.connections: dict[str, Connection] = {}
        self._listen_tasks: dict[str, asyncio.Task[None]] = {}
        self._install_builtins()

    @classmethod
    def from_config(cls, config: BotConfig) -> Bot:
        bot = cls(config.nick, hook_timeout=config.hook_timeout)
        for connection_config in config.connections:
            bot.add_connection(connection_config)
        return bot

    def _install_builtins(self) -> None:
        # State first so application listeners observe post-event state.
        self.tracker.install(self.registry)
        self.identity.install(self.registry)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    def add_connection(
        self, config: ConnectionConfig, on_ready: ReadyCallback | None = None
    ) -> Connection:
        if config.name in self.connections:
            raise ValueError(f"connection {config.name!r} already exists")
        throttle = None
        if config.throttle is not None:
            throttle = TokenBucketThrottle(
                config.throttle.rate, config.throttle.burst, name=config.name
            )
        connection = Connection(
            config, self.dispatcher, self.nick, on_ready=on_ready, throttle=throttle
        )
        self.connections[config.name] = connection
        logger.log_event(
            "bot",
            "connection_added",
            server=config.name,
            host=config.host,
            port=config.port,
        )
        return connection

    def get_connection(self, server: str) -> Connection:
        try:
            return self.connections[server]
        except KeyError:
            raise ConnectionNotFoundError(
                f"no connection named {server!r}", data={"server": server}
            ) from None

    async def connect(self, server: str) -> Connection:
        """Open ``server``, send registration and start its read loop."""
        connection = self.get_connection(server)
        if connection.connected:
            return connection
        await connection.connect()
        self.registry.lock()
        self.identity.register(connection)
        task = asyncio.create_task(connection.listen(), name=f"ircbot-listen-{server}")
        task.add_done_callback(partial(self._listener_done, server))
        self._listen_tasks[server] = task
        return connection

    async def connect_all(self) -> list[str]:
        """Connect every registered connection; return the names that came up."""
        names = list(self.connections)
        results = await asyncio.gather(
            *(self.connect(name) for name in names), return_exceptions=True
        )
        connected = []
        for name, result in zip(names, results, strict=True):
            if isinstance(result, BaseException):
                log_error("Connection failed", result, {"server": name})
            else:
                connected.append(name)
        return connected

    async def run(self) -> None:
        """Connect everything and wait until no connection is left running."""
        await self.connect_all()
        while True:
            tasks = [task for task in self._listen_tasks.values() if not task.done()]
            if not tasks:
                break
            await asyncio.wait(tasks, return_when=asyncio.ALL_COMPLETED)
        logger.log_event("bot", "stopped")

    async def reconnect(self, server: str) -> Connection:
        connection = self.get_connection(server)
        logger.log_event("bot", "reconnect", level=logging.WARNING, server=server)
        await self._stop_listener(server)
        await connection.disconnect()
        return await self.connect(server)

    async def shutdown(self, reason: str | None = None) -> None:
        """Send QUIT on every live connection and close them all."""
        for connection in self.connections.values():
            if connection.connected:
                connection.quit(reason)
        for server in list(self._listen_tasks):
            await self._stop_listener(server)
        for connection in self.connections.values():
            await connection.disconnect()
        self.registry.unlock()
        logger.log_event("bot", "shutdown", connections=len(self.connections))

    async def _stop_listener(self, server: str) -> None:
        task = self._listen_tasks.pop(server, None)
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _listener_done(self, server: str, task: asyncio.Task[None]) -> None:
        if self._listen_tasks.get(server) is task:
            del self._listen_tasks[server]
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                log_error("Listener task failed", exc, {"server": server})
        if not any(c.connected for c in self.connections.values()):
            self.registry.unlock()

    # ------------------------------------------------------------------
    # Listeners and hooks
    # ------------------------------------------------------------------
    def add_listener(
        self,
        actions: Action | str | Iterable[Action | str],
        tag: str,
        handler: Handler,
    ) -> list[str]:
        return self.registry.add(actions, tag, handler)

    def remove_listeners(self) -> None:
        """Drop every application listener; built-ins are reinstalled."""
        self.registry.clear()
        self._install_builtins()

    def add_hook(self, hook: Hook) -> None:
        self.dispatcher.add_hook(hook)

    # ------------------------------------------------------------------
    # Ignores
    # ------------------------------------------------------------------
    def ignore_tag(self, subject: str, tag: str) -> None:
        if tag in RESERVED_TAGS:
            raise ValueError(f"tag {tag!r} is reserved for built-in listeners")
        self.ignores.add(subject, tag)

    def remove_ignore(self, subject: str, tag: str) -> bool:
        return self.ignores.remove(subject, tag)

    def clear_ignores(self) -> None:
        self.ignores.clear()

    def is_ignored(self, subject: str, tag: str) -> bool:
        return self.ignores.is_ignored(subject, tag)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------
    def say(self, server: str, target: str, text: str) -> str:
        return self.get_connection(server).privmsg(target, text)

    def act(self, server: str, target: str, text: str) -> str:
        return self.get_connection(server).action(target, text)

    def notice(self, server: str, target: str, text: str) -> str:
        return self.get_connection(server).notice(target, text)

    def join(self, server: str, channel: str, key: str | None = None) -> str:
        return self.get_connection(server).join(channel, key)

    def part(self, server: str, channel: str, reason: str | None = None) -> str:
        return self.get_connection(server).part(channel, reason)

    def mode(self, server: str, target: str, modes: str, *args: str) -> str:
        return self.get_connection(server).mode(target, modes, *args)

    def set_nick(self, server: str, nick: str) -> str:
        return self.get_connection(server).set_nick(nick)

    def quit(self, server: str, reason: str | None = None) -> str:
        return self.get_connection(server).quit(reason)

    @staticmethod
    def reply(event: Event, text: str) -> None:
        event.reply(text)
