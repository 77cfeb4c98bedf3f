"""Outbound line throttling.

The engine itself writes fire-and-forget; a connection configured with a
throttle hands every line to it instead. ``TokenBucketThrottle`` lets
``burst`` lines through immediately and then releases queued lines at
``rate`` lines per second, in submission order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol

from ..constants import THROTTLE_BURST, THROTTLE_RATE
from ..logs.logger import logger

LineWriter = Callable[[str], None]


class OutboundThrottle(Protocol):
    def bind(self, write: LineWriter) -> None:
        """Attach the function that puts a line on the wire."""
        ...

    def submit(self, line: str) -> None:
        """Queue ``line``; it is written now or later, never dropped."""
        ...

    async def close(self) -> None:
        """Stop releasing lines and discard anything still queued."""
        ...


class TokenBucketThrottle:
    def __init__(
        self,
        rate: float = THROTTLE_RATE,
        burst: int = THROTTLE_BURST,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str | None = None,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = rate
        self.burst = burst
        self.name = name
        self._clock = clock
        self._tokens = float(burst)
        self._updated = clock()
        self._queue: deque[str] = deque()
        self._write: LineWriter | None = None
        self._task: asyncio.Task[None] | None = None

    def snapshot(self) -> dict[str, object]:
        """Return a serializable view of the bucket for debugging."""
        self._refill()
        return {
            "rate": self.rate,
            "burst": self.burst,
            "tokens": round(self._tokens, 3),
            "queued": len(self._queue),
            "draining": self._task is not None and not self._task.done(),
        }

    def bind(self, write: LineWriter) -> None:
        self._write = write

    def submit(self, line: str) -> None:
        if self._write is None:
            raise RuntimeError("throttle is not bound to a writer")
        self._refill()
        if not self._queue and self._tokens >= 1:
            self._tokens -= 1
            self._write(line)
            return
        self._queue.append(line)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        dropped = len(self._queue)
        self._queue.clear()
        if dropped:
            logger.log_event(
                "throttle",
                "closed",
                level=logging.DEBUG,
                server=self.name,
                dropped=dropped,
            )

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._updated = now
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)

    async def _drain(self) -> None:
        while self._queue:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.rate
                logger.log_event(
                    "throttle",
                    "wait",
                    level=logging.DEBUG,
                    server=self.name,
                    wait_time=round(wait, 3),
                    queued=len(self._queue),
                )
                await asyncio.sleep(wait)
                continue
            self._tokens -= 1
            if self._write is not None:
                self._write(self._queue.popleft())
