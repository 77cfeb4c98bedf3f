"""Event dispatch: pre-emit hooks, then ignore-filtered listeners."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..constants import HOOK_TIMEOUT_SECONDS
from ..logging_config import fault_ledger
from ..logs.logger import logger
from .ignores import IgnoreTable
from .models import Action, Event
from .parser import parse_record
from .registry import Listener, ListenerRegistry

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection

Hook = Callable[[Event], Any]


async def _invoke(func: Callable[[Event], Any], event: Event) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func(event)
    result = func(event)
    if inspect.isawaitable(result):
        return await result
    return result


def _callable_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", repr(func))


class IRCDispatcher:
    """Runs every parsed event through hooks and listeners, in order.

    Hooks run one at a time in registration order and each is bounded by
    ``hook_timeout`` seconds; a hook that raises or times out is logged and
    treated as done. Listeners then run in registration order; a listener
    whose tag is ignored for the sender or the target channel is skipped,
    and a listener that raises is logged without affecting the rest.
    """

    def __init__(
        self,
        registry: ListenerRegistry | None = None,
        ignores: IgnoreTable | None = None,
        hook_timeout: float | None = HOOK_TIMEOUT_SECONDS,
    ) -> None:
        self.registry = registry if registry is not None else ListenerRegistry()
        self.ignores = ignores if ignores is not None else IgnoreTable()
        self.hook_timeout = hook_timeout
        self.hooks: list[Hook] = []

    def add_hook(self, hook: Hook) -> None:
        if not callable(hook):
            raise TypeError("hook is not callable")
        self.hooks.append(hook)

    async def handle_record(self, connection: Connection, record: str) -> Event | None:
        logger.log_event(
            "irc", "record", level=logging.DEBUG, server=connection.name, raw=record
        )
        event = parse_record(connection, record)
        if event is None:
            return None
        await self.emit(event)
        return event

    async def emit(self, event: Event) -> None:
        await self._run_hooks(event)
        for key in self._keys(event):
            for listener in self.registry.listeners_for(key):
                if self._is_suppressed(event, listener):
                    logger.log_event(
                        "dispatch",
                        "listener_ignored",
                        level=logging.DEBUG,
                        server=event.server,
                        tag=listener.tag,
                        sender=event.nick,
                    )
                    continue
                await self._run_listener(listener, event)

    @staticmethod
    def _keys(event: Event) -> list[str]:
        keys = [event.action]
        if event.is_numeric:
            keys.append(Action.NUMERIC.value)
        return keys

    def _is_suppressed(self, event: Event, listener: Listener) -> bool:
        subjects = [event.nick]
        if event.channel is not None:
            subjects.append(event.channel.name)
        subjects.extend(channel.name for channel in event.channels)
        return self.ignores.suppresses(subjects, listener.tag)

    async def _run_hooks(self, event: Event) -> None:
        for hook in self.hooks:
            try:
                if self.hook_timeout and self.hook_timeout > 0:
                    await asyncio.wait_for(_invoke(hook, event), self.hook_timeout)
                else:
                    await _invoke(hook, event)
            except TimeoutError:
                logger.log_event(
                    "dispatch",
                    "hook_timeout",
                    level=logging.WARNING,
                    server=event.server,
                    hook=_callable_name(hook),
                    timeout=self.hook_timeout,
                    action=event.action,
                )
                fault_ledger.record(
                    "hook",
                    _callable_name(hook),
                    f"timed out after {self.hook_timeout}s",
                    raw=event.raw,
                )
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "dispatch",
                    "hook_error",
                    level=logging.ERROR,
                    server=event.server,
                    hook=_callable_name(hook),
                    action=event.action,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                fault_ledger.record("hook", _callable_name(hook), e, raw=event.raw)

    async def _run_listener(self, listener: Listener, event: Event) -> None:
        try:
            await _invoke(listener.handler, event)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "dispatch",
                "listener_error",
                level=logging.ERROR,
                exc_info=True,
                server=event.server,
                tag=listener.tag,
                listener=listener.name,
                action=event.action,
                raw=event.raw,
                error=str(e),
                error_type=type(e).__name__,
            )
            fault_ledger.record("listener", listener.tag, e, raw=event.raw)
