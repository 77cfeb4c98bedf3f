"""Listener registry keyed by action."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors.internal import RegistryLockedError, UnknownActionError
from ..logs.logger import logger
from .models import Action, is_numeric

if TYPE_CHECKING:  # pragma: no cover
    from .models import Event

Handler = Callable[["Event"], Any]


@dataclass(frozen=True, slots=True)
class Listener:
    tag: str
    handler: Handler

    @property
    def name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


def normalize_key(action: Action | str) -> str:
    """Return the registry key for ``action`` or raise UnknownActionError."""
    if isinstance(action, Action):
        return action.value
    key = str(action).upper()
    if is_numeric(key):
        return key
    try:
        return Action(key).value
    except ValueError:
        raise UnknownActionError(
            f"cannot listen for {action!r}: not a supported action or numeric",
            data={"action": action},
        ) from None


class ListenerRegistry:
    """Ordered listeners per action.

    Appending is always allowed. Once ``lock()`` has been called (the bot
    does so when its first connection goes live) removal raises
    ``RegistryLockedError`` until ``unlock()``.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    def add(
        self, actions: Action | str | Iterable[Action | str], tag: str, handler: Handler
    ) -> list[str]:
        if not callable(handler):
            raise TypeError(f"listener for tag {tag!r} is not callable")
        if isinstance(actions, str):  # Action is a str too
            actions = [actions]
        keys = [normalize_key(action) for action in actions]
        listener = Listener(tag=tag, handler=handler)
        for key in keys:
            self._listeners.setdefault(key, []).append(listener)
        logger.log_event(
            "bot",
            "listener_added",
            level=logging.DEBUG,
            tag=tag,
            listener=listener.name,
            actions=",".join(keys),
        )
        return keys

    def listeners_for(self, key: str) -> tuple[Listener, ...]:
        # Snapshot so a listener registering another listener cannot
        # change the list being iterated.
        return tuple(self._listeners.get(key, ()))

    def clear(self) -> None:
        if self._locked:
            raise RegistryLockedError(
                "listeners cannot be removed while connections are live"
            )
        self._listeners.clear()
        logger.log_event("bot", "registry_reset", level=logging.DEBUG)

    def __len__(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())
