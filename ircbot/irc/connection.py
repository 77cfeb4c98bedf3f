"""One server link: transport, framing, channel registry and outbound helpers."""

from __future__ import annotations

import asyncio
import codecs
import logging
import socket
import ssl
import time
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import (
    CONNECT_BACKOFF_MAX,
    CONNECT_TIMEOUT,
    KEEPALIVE_INTERVAL,
    READ_CHUNK_SIZE,
)
from ..errors.internal import NetworkError
from ..logs.logger import logger
from .commands import build_record, ctcp, trailing
from .models import Channel
from .tokenizer import LineTokenizer

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import ConnectionConfig
    from ..rate.throttle import OutboundThrottle
    from .dispatcher import IRCDispatcher
    from .models import Event

ReadyCallback = Callable[["Event"], Any]


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    REGISTERING = auto()
    READY = auto()


class Connection:
    """A single IRC server link owned by a bot.

    Records are read, framed and dispatched strictly in arrival order: the
    next chunk is not read until every record of the previous one has been
    fully dispatched. ``channels`` belongs to this connection alone and is
    only mutated by the state tracker's listeners.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        dispatcher: IRCDispatcher,
        nick: str | None = None,
        *,
        on_ready: ReadyCallback | None = None,
        throttle: OutboundThrottle | None = None,
    ) -> None:
        self.config = config
        self.name = config.name
        self.host = config.host
        self.port = config.port
        resolved_nick = config.nick or nick
        if not resolved_nick:
            raise ValueError(f"connection {config.name!r} has no nick")
        self.nick: str = resolved_nick
        self.dispatcher = dispatcher
        self.on_ready = on_ready
        self.channels: dict[str, Channel] = {}
        self.tokenizer = LineTokenizer()
        self._decoder = codecs.getincrementaldecoder(config.encoding)(errors="replace")
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.state = ConnectionState.DISCONNECTED
        self.welcomed = False
        self.last_activity = 0.0
        self.throttle = throttle
        if throttle is not None:
            throttle.bind(self._write)

    def __repr__(self) -> str:
        return f"Connection(name={self.name!r}, nick={self.nick!r}, state={self.state.name})"

    @property
    def connected(self) -> bool:
        return self.writer is not None and self.state is not ConnectionState.DISCONNECTED

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                server=self.name,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    def mark_ready(self) -> None:
        self.welcomed = True
        self._set_state(ConnectionState.READY)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        """Open the TCP (optionally TLS) link, retrying with backoff.

        Raises NetworkError once ``config.connect_attempts`` are exhausted.
        """
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "irc",
            "connect_start",
            server=self.name,
            host=self.host,
            port=self.port,
            tls=self.config.tls,
        )
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.connect_attempts),
                wait=wait_exponential(multiplier=1, max=CONNECT_BACKOFF_MAX),
                retry=retry_if_exception_type((OSError, TimeoutError)),
                before_sleep=self._log_retry,
                reraise=True,
            ):
                with attempt:
                    self.reader, self.writer = await asyncio.wait_for(
                        asyncio.open_connection(
                            self.host, self.port, ssl=self._ssl_context()
                        ),
                        timeout=CONNECT_TIMEOUT,
                    )
        except (OSError, TimeoutError) as e:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.log_event(
                "irc",
                "connect_failed",
                level=logging.ERROR,
                server=self.name,
                host=self.host,
                port=self.port,
                attempts=self.config.connect_attempts,
                error=str(e) or type(e).__name__,
            )
            raise NetworkError(
                f"could not connect to {self.host}:{self.port}",
                data={"server": self.name, "host": self.host, "port": self.port},
            ) from e
        self._enable_keepalive()
        self.last_activity = time.monotonic()
        self._set_state(ConnectionState.REGISTERING)
        logger.log_event(
            "irc", "connect_success", server=self.name, host=self.host, port=self.port
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.log_event(
            "irc",
            "connect_retry",
            level=logging.WARNING,
            server=self.name,
            attempt=retry_state.attempt_number,
            max_attempts=self.config.connect_attempts,
            wait_time=round(retry_state.next_action.sleep, 3)
            if retry_state.next_action
            else 0,
            error=str(error) if error else None,
        )

    def _ssl_context(self) -> ssl.SSLContext | None:
        if not self.config.tls:
            return None
        context = ssl.create_default_context()
        if not self.config.tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _enable_keepalive(self) -> None:
        if not self.config.keepalive or self.writer is None:
            return
        sock = self.writer.get_extra_info("socket")
        if sock is None:
            return
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            if hasattr(socket, "TCP_KEEPIDLE"):
                sock.setsockopt(
                    socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, KEEPALIVE_INTERVAL
                )
        except OSError as e:
            logger.log_event(
                "irc",
                "keepalive_unavailable",
                level=logging.DEBUG,
                server=self.name,
                error=str(e),
            )

    async def listen(self) -> None:
        """Read until EOF, read error or idle timeout, then disconnect."""
        if self.reader is None:
            raise NetworkError(
                f"connection {self.name!r} is not open", data={"server": self.name}
            )
        try:
            while self.reader is not None:
                try:
                    chunk = await asyncio.wait_for(
                        self.reader.read(READ_CHUNK_SIZE),
                        timeout=self.config.idle_timeout,
                    )
                except TimeoutError:
                    logger.log_event(
                        "irc",
                        "idle_timeout",
                        level=logging.WARNING,
                        server=self.name,
                        timeout=self.config.idle_timeout,
                    )
                    break
                except OSError as e:
                    logger.log_event(
                        "irc",
                        "read_error",
                        level=logging.ERROR,
                        server=self.name,
                        error=str(e),
                    )
                    break
                if not chunk:
                    logger.log_event("irc", "connection_closed", server=self.name)
                    break
                self.last_activity = time.monotonic()
                await self.process_data(self._decoder.decode(chunk))
        finally:
            await self.disconnect()

    async def process_data(self, text: str) -> None:
        """Frame ``text`` into records and dispatch each complete one."""
        self.tokenizer.feed(text)
        for record in self.tokenizer.drain():
            if not record.strip():
                continue
            await self.dispatcher.handle_record(self, record)

    async def disconnect(self) -> None:
        writer, self.writer = self.writer, None
        self.reader = None
        if self.throttle is not None:
            await self.throttle.close()
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (OSError, ConnectionError) as e:
                logger.log_event(
                    "irc",
                    "close_error",
                    level=logging.DEBUG,
                    server=self.name,
                    error=str(e),
                )
        was_open = self.state is not ConnectionState.DISCONNECTED
        self.channels.clear()
        self.tokenizer.reset()
        self._decoder.reset()
        self.welcomed = False
        self._set_state(ConnectionState.DISCONNECTED)
        if was_open:
            logger.log_event(
                "irc", "disconnected", level=logging.WARNING, server=self.name
            )

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------
    def send(self, verb: str, *args: object) -> str:
        """Build one record and hand it to the throttle or the socket."""
        line = build_record(verb, *args)
        if self.throttle is not None:
            self.throttle.submit(line)
        else:
            self._write(line)
        return line

    def _write(self, line: str) -> None:
        if self.writer is None or self.writer.is_closing():
            logger.log_event(
                "irc",
                "send_dropped",
                level=logging.WARNING,
                server=self.name,
                line=line.rstrip(),
            )
            return
        self.writer.write(line.encode(self.config.encoding))
        logger.log_event(
            "irc", "send", level=logging.DEBUG, server=self.name, line=line.rstrip()
        )

    def privmsg(self, target: str, text: str) -> str:
        return self.send("PRIVMSG", target, trailing(text))

    def notice(self, target: str, text: str) -> str:
        return self.send("NOTICE", target, trailing(text))

    def action(self, target: str, text: str) -> str:
        return self.privmsg(target, ctcp("ACTION", text))

    def join(self, channel: str, key: str | None = None) -> str:
        return self.send("JOIN", channel, key)

    def part(self, channel: str, reason: str | None = None) -> str:
        return self.send("PART", channel, trailing(reason) if reason else None)

    def mode(self, target: str, modes: str, *args: str) -> str:
        return self.send("MODE", target, modes, *args)

    def set_nick(self, nick: str) -> str:
        return self.send("NICK", nick)

    def pong(self, token: str) -> str:
        return self.send("PONG", trailing(token))

    def quit(self, reason: str | None = None) -> str:
        # Written directly: anything still queued is dropped on disconnect.
        line = build_record("QUIT", trailing(reason) if reason else None)
        self._write(line)
        return line

    def channels_with(self, nick: str) -> list[Channel]:
        """Tracked channels that list ``nick`` as a member."""
        return [channel for channel in self.channels.values() if nick in channel]
