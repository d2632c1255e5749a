"""Single coalesced expiration timer.

At most one deferred callback is outstanding per cache. It always targets
the earliest finite expiration known when it was armed:

- idle: no callback scheduled.
- armed(target): one callback scheduled to fire at `target`.

ensure() only ever moves the target earlier. When the callback fires the
scheduler goes idle, runs the purge callback, then re-arms for whatever
the earliest remaining expiration is.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ttlcache.core.interfaces import Clock, TimerHandle
from ttlcache.core.models import NEVER, Timestamp

logger = logging.getLogger(__name__)


class TimerScheduler:
    def __init__(
        self,
        *,
        clock: Clock,
        on_fire: Callable[[], object],
        next_target: Callable[[], Optional[Timestamp]],
    ) -> None:
        self._clock = clock
        self._on_fire = on_fire
        self._next_target = next_target
        self._handle: Optional[TimerHandle] = None
        self._target: Optional[Timestamp] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def target(self) -> Optional[Timestamp]:
        return self._target

    def ensure(self, target: Optional[Timestamp]) -> None:
        if target is None or target == NEVER:
            return
        # Coalesce: an equal or earlier timer already covers this expiration
        if self._handle is not None and self._target is not None and self._target <= target:
            return

        self.cancel()
        handle = self._clock.after(target - self._clock.now(), self._fire)
        if handle is None:
            return
        self._handle = handle
        self._target = target
        logger.debug("Expiration timer armed for %s", target)

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        logger.debug("Expiration timer cancelled (target %s)", self._target)
        self._handle = None
        self._target = None

    def _fire(self) -> None:
        logger.debug("Expiration timer fired (target %s)", self._target)
        self._handle = None
        self._target = None
        try:
            self._on_fire()
        finally:
            self.ensure(self._next_target())
