"""Registration with the server: PASS/NICK/USER, welcome handling, auto-join."""

from __future__ import annotations

import inspect
import logging

from ..constants import NICK_IN_USE_SUFFIX
from ..irc.commands import trailing
from ..irc.connection import Connection
from ..irc.models import Event
from ..irc.numerics import ERR_NICKNAMEINUSE, RPL_WELCOME
from ..irc.registry import ListenerRegistry
from ..logs.logger import logger

IDENTITY_TAG = "core.identity"


class IdentityRegistrar:
    """Drives a connection from TCP-open to joined-and-ready.

    ``register`` is called right after the transport opens. The welcome
    listener completes registration once per session: it adopts the nick
    the server assigned, identifies to the configured service, joins the
    configured channels and fires the connection's ``on_ready`` callback.
    """

    def install(self, registry: ListenerRegistry) -> None:
        registry.add(RPL_WELCOME, IDENTITY_TAG, self.on_welcome)
        registry.add(ERR_NICKNAMEINUSE, IDENTITY_TAG, self.on_nick_in_use)

    def register(self, connection: Connection) -> None:
        config = connection.config
        if config.password:
            connection.send("PASS", config.password)
        connection.set_nick(connection.nick)
        username = config.username or connection.nick
        realname = config.realname or connection.nick
        connection.send("USER", username, "0", "*", trailing(realname))
        logger.log_event(
            "identity",
            "registration_sent",
            level=logging.DEBUG,
            server=connection.name,
            nick=connection.nick,
        )

    async def on_welcome(self, event: Event) -> None:
        connection = event.connection
        if connection.welcomed:
            return
        if event.args and event.args[0] != connection.nick:
            logger.log_event(
                "identity",
                "nick_assigned",
                server=event.server,
                requested=connection.nick,
                nick=event.args[0],
            )
            connection.nick = event.args[0]
        connection.mark_ready()
        config = connection.config
        if config.service_password:
            connection.privmsg(config.service, f"identify {config.service_password}")
            logger.log_event(
                "identity", "identify_sent", server=event.server, service=config.service
            )
        for channel in config.channels:
            connection.join(channel)
        logger.log_event(
            "identity",
            "welcomed",
            server=event.server,
            nick=connection.nick,
            channels=len(config.channels),
        )
        callback = connection.on_ready
        if callback is not None:
            result = callback(event)
            if inspect.isawaitable(result):
                await result

    def on_nick_in_use(self, event: Event) -> None:
        connection = event.connection
        if connection.welcomed:
            return  # a failed /nick after registration leaves the current nick
        rejected = event.user or connection.nick
        connection.nick = f"{rejected}{NICK_IN_USE_SUFFIX}"
        logger.log_event(
            "identity",
            "nick_in_use",
            level=logging.WARNING,
            server=event.server,
            rejected=rejected,
            nick=connection.nick,
        )
        connection.set_nick(connection.nick)
