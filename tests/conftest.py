import os

# Keep connect retries fast in tests; constants are read at import time.
os.environ.setdefault("IRC_CONNECT_BACKOFF_MAX", "0")
os.environ.setdefault("IRC_CONNECT_TIMEOUT", "2")

import pytest  # noqa: E402

from ircbot.bot.core import Bot  # noqa: E402
from ircbot.config.model import ConnectionConfig  # noqa: E402
from ircbot.irc.connection import Connection  # noqa: E402
from ircbot.irc.dispatcher import IRCDispatcher  # noqa: E402
from ircbot.irc.tracker import StateTracker  # noqa: E402


class DummyConnection(Connection):
    """Connection that records outbound lines instead of writing to a socket."""

    def __init__(
        self,
        dispatcher: IRCDispatcher | None = None,
        *,
        name: str = "testnet",
        nick: str = "bot",
        **config: object,
    ) -> None:
        super().__init__(
            ConnectionConfig(name=name, host="irc.example.org", **config),
            dispatcher if dispatcher is not None else IRCDispatcher(),
            nick,
        )
        self.sent: list[str] = []

    def _write(self, line: str) -> None:  # capture instead of network
        self.sent.append(line.removesuffix("\r\n"))

    async def receive(self, *records: str) -> None:
        await self.process_data("".join(f"{r}\r\n" for r in records))


def attach(bot: Bot, *, name: str = "testnet", **config: object) -> DummyConnection:
    """Register a DummyConnection on ``bot`` sharing its dispatcher."""
    connection = DummyConnection(bot.dispatcher, name=name, nick=bot.nick, **config)
    bot.connections[name] = connection
    return connection


@pytest.fixture
def dispatcher() -> IRCDispatcher:
    disp = IRCDispatcher()
    StateTracker().install(disp.registry)
    return disp


@pytest.fixture
def conn(dispatcher: IRCDispatcher) -> DummyConnection:
    return DummyConnection(dispatcher)


@pytest.fixture
def bot() -> Bot:
    return Bot("bot", hook_timeout=0.2)


@pytest.fixture
def bot_conn(bot: Bot) -> DummyConnection:
    return attach(bot)
