"""Clock implementations.

- AsyncioClock: monotonic milliseconds, deferred callbacks on an asyncio loop.
- ManualClock: time only moves when advance() is called; due callbacks run
  synchronously inside advance(). Useful for tests and simulations.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class AsyncioClock:
    def __init__(self, *, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def now(self) -> float:
        # Use monotonic time so expirations aren't affected by system clock changes.
        return time.monotonic() * 1000.0

    def after(self, delay_ms: float, callback: Callable[[], None]) -> Optional[asyncio.TimerHandle]:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop to carry the timer; callers fall back to explicit purging.
                logger.debug("No running event loop, deferred callback not scheduled")
                return None
        return loop.call_later(max(0.0, delay_ms) / 1000.0, callback)


class _ManualTimer:
    __slots__ = ("due", "callback", "cancelled")

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    def __init__(self, *, start: float = 0) -> None:
        self._now = start
        self._seq = itertools.count()
        self._heap: List[Tuple[float, int, _ManualTimer]] = []

    def now(self) -> float:
        return self._now

    def after(self, delay_ms: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0, delay_ms), callback)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def advance(self, ms: float) -> None:
        """Move time forward by ms, firing every callback that comes due.

        Callbacks fire in due-time order (ties in scheduling order) with
        now() reporting their due time; callbacks they schedule within the
        advanced span fire too.
        """
        target = self._now + ms
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            self._now = max(self._now, due)
            timer.cancelled = True
            timer.callback()
        self._now = target
