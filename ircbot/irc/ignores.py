"""Per-bot ignore table: subject name -> listener tags to suppress."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..logs.logger import logger


class IgnoreTable:
    def __init__(self) -> None:
        self._entries: dict[str, set[str]] = {}

    def add(self, subject: str, tag: str) -> None:
        self._entries.setdefault(subject, set()).add(tag)
        logger.log_event(
            "bot", "ignore_added", level=logging.DEBUG, subject=subject, tag=tag
        )

    def remove(self, subject: str, tag: str) -> bool:
        tags = self._entries.get(subject)
        if not tags or tag not in tags:
            return False
        tags.discard(tag)
        if not tags:
            del self._entries[subject]
        logger.log_event(
            "bot", "ignore_removed", level=logging.DEBUG, subject=subject, tag=tag
        )
        return True

    def clear(self) -> None:
        self._entries.clear()
        logger.log_event("bot", "ignores_cleared", level=logging.DEBUG)

    def is_ignored(self, subject: str | None, tag: str) -> bool:
        if subject is None:
            return False
        return tag in self._entries.get(subject, ())

    def suppresses(self, subjects: Iterable[str | None], tag: str) -> bool:
        return any(self.is_ignored(subject, tag) for subject in subjects)
