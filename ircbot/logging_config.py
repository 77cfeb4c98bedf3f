"""Console logging setup and per-source fault counting.

Listener and hook faults are logged and swallowed by the dispatcher, so a
listener that fails on every record would otherwise only show up as a
stream of identical error lines. ``FaultLedger`` keeps a count per
``(category, source)``, where the source is the listener tag, the hook
name, or the server for transport errors.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any

import colorlog

from .logs.logger import logger

ENGINE_LOGGER = "ircbot"


@dataclass(slots=True)
class FaultRecord:
    category: str
    source: str
    count: int = 0
    last_error: str = ""
    last_raw: str | None = None
    last_seen: float = 0.0


class FaultLedger:
    """Thread-safe ``(category, source) -> FaultRecord`` table."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], FaultRecord] = {}
        self._lock = threading.Lock()

    def record(
        self,
        category: str,
        source: str,
        error: BaseException | str,
        raw: str | None = None,
    ) -> FaultRecord:
        with self._lock:
            entry = self._records.get((category, source))
            if entry is None:
                entry = self._records[(category, source)] = FaultRecord(category, source)
            entry.count += 1
            entry.last_error = error if isinstance(error, str) else f"{type(error).__name__}: {error}"
            entry.last_raw = raw
            entry.last_seen = time.time()
            return entry

    def count(self, category: str, source: str | None = None) -> int:
        with self._lock:
            return sum(
                r.count
                for (cat, src), r in self._records.items()
                if cat == category and (source is None or src == source)
            )

    def by_source(self, category: str) -> dict[str, int]:
        with self._lock:
            return {
                src: r.count for (cat, src), r in self._records.items() if cat == category
            }

    def worst(self) -> list[FaultRecord]:
        """Records ordered by count, most frequent first."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.count, reverse=True)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def log_report(self) -> None:
        for entry in self.worst():
            logger.log_event(
                "faults",
                "summary",
                level=logging.WARNING,
                category=entry.category,
                source=entry.source,
                count=entry.count,
                error=entry.last_error,
            )


fault_ledger = FaultLedger()


def log_structured_error(
    category: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    *,
    source: str | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[CATEGORY] message | ExcType: exc | k=v ...`` and count it.

    ``source`` defaults to the ``server`` entry of ``context``.
    """
    context = context or {}
    parts = [f"[{category.upper()}] {message}"]
    if exception is not None:
        parts.append(f"{type(exception).__name__}: {exception}")
    if context:
        parts.append(" ".join(f"{k}={v}" for k, v in context.items()))
    logging.getLogger(ENGINE_LOGGER).log(level, " | ".join(parts))
    fault_ledger.record(category, source or str(context.get("server", "bot")), message)


def _debug_requested() -> bool:
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")


class LoggerConfigurator:
    """Attaches a colorlog console handler to the ``ircbot`` logger.

    ``DEBUG=true`` lowers the level to DEBUG. Calling ``configure`` twice
    replaces the handler instead of stacking a second one.
    """

    def __init__(
        self, logger_name: str = ENGINE_LOGGER, *, report_faults_at_exit: bool = True
    ) -> None:
        self.logger_name = logger_name
        self.report_faults_at_exit = report_faults_at_exit
        self.handler: logging.Handler | None = None

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%H:%M:%S",
            log_colors={
                "DEBUG": "blue",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
            secondary_log_colors={"message": {"WARNING": "yellow", "ERROR": "red"}},
        )

    def configure(self) -> logging.Logger:
        target = logging.getLogger(self.logger_name)
        if self.handler is not None:
            target.removeHandler(self.handler)
        self.handler = logging.StreamHandler(sys.stderr)
        self.handler.setFormatter(self.build_formatter())
        target.addHandler(self.handler)
        target.setLevel(logging.DEBUG if _debug_requested() else logging.INFO)
        if self.report_faults_at_exit:
            atexit.unregister(fault_ledger.log_report)
            atexit.register(fault_ledger.log_report)
        return target
