import asyncio

import pytest

from ircbot.bot.core import Bot
from ircbot.config.model import ConnectionConfig
from ircbot.errors.internal import NetworkError
from ircbot.irc.connection import Connection, ConnectionState
from ircbot.irc.dispatcher import IRCDispatcher
from ircbot.irc.models import Action


class FakeServer:
    """Minimal line-based server that answers registration and JOIN."""

    def __init__(self) -> None:
        self.received: list[str] = []
        self.closed = asyncio.Event()
        self.server: asyncio.Server | None = None

    async def start(self) -> int:
        self.server = await asyncio.start_server(self.handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while line := await reader.readline():
                text = line.decode().rstrip("\r\n")
                self.received.append(text)
                if text.startswith("USER"):
                    writer.write(b":srv 001 bot :Welcome\r\n")
                elif text.startswith("JOIN"):
                    # Split mid-record and mid-character to exercise framing
                    writer.write(f":bot!b@h {text}\r\n:srv 353 bot = #test :bot @ali".encode())
                    await writer.drain()
                    await asyncio.sleep(0.05)
                    writer.write(b"ce\r\n:alice!a@h PRIVMSG #test :caf\xc3")
                    await writer.drain()
                    await asyncio.sleep(0.05)
                    writer.write(b"\xa9\r\n")
                await writer.drain()
        finally:
            writer.close()
            self.closed.set()


@pytest.mark.asyncio
async def test_end_to_end_registration_and_tracking():
    fake = FakeServer()
    port = await fake.start()
    bot = Bot("bot")
    ready = asyncio.Event()
    messages: list[str] = []
    got_message = asyncio.Event()

    def on_message(ev):
        messages.append(ev.message)
        got_message.set()

    bot.add_listener(Action.PRIVMSG, "app", on_message)
    bot.add_connection(
        ConnectionConfig(name="local", host="127.0.0.1", port=port, channels=["#test"]),
        on_ready=lambda ev: ready.set(),
    )
    try:
        await bot.connect("local")
        assert bot.registry.locked
        await asyncio.wait_for(ready.wait(), 2)
        await asyncio.wait_for(got_message.wait(), 2)
        conn = bot.connections["local"]
        assert conn.state is ConnectionState.READY
        assert messages == ["café"]
        assert set(conn.channels["#test"].members) == {"bot", "alice"}
        assert conn.channels["#test"].members["alice"].op
        await bot.shutdown("done")
        await asyncio.wait_for(fake.closed.wait(), 2)
    finally:
        await fake.stop()
    assert fake.received[:3] == ["NICK bot", "USER bot 0 * :bot", "JOIN #test"]
    assert fake.received[-1] == "QUIT :done"
    assert not bot.registry.locked
    assert bot.connections["local"].channels == {}


@pytest.mark.asyncio
async def test_connect_failure_raises_network_error():
    probe = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = probe.sockets[0].getsockname()[1]
    probe.close()
    await probe.wait_closed()
    config = ConnectionConfig(name="dead", host="127.0.0.1", port=port, connect_attempts=2)
    conn = Connection(config, IRCDispatcher(), "bot")
    with pytest.raises(NetworkError):
        await conn.connect()
    assert conn.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_idle_timeout_disconnects():
    async def silent(reader, writer):
        await reader.read()
        writer.close()

    server = await asyncio.start_server(silent, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    config = ConnectionConfig(name="idle", host="127.0.0.1", port=port, idle_timeout=0.2)
    conn = Connection(config, IRCDispatcher(), "bot")
    try:
        await conn.connect()
        assert conn.connected
        await asyncio.wait_for(conn.listen(), 2)
        assert conn.state is ConnectionState.DISCONNECTED
        assert not conn.connected
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_listen_requires_open_connection():
    conn = Connection(ConnectionConfig(name="x", host="localhost"), IRCDispatcher(), "bot")
    with pytest.raises(NetworkError):
        await conn.listen()


def test_nick_required():
    with pytest.raises(ValueError):
        Connection(ConnectionConfig(name="x", host="localhost"), IRCDispatcher())


def test_send_when_disconnected_is_dropped():
    conn = Connection(ConnectionConfig(name="x", host="localhost"), IRCDispatcher(), "bot")
    assert conn.privmsg("#c", "hi") == "PRIVMSG #c :hi\r\n"
