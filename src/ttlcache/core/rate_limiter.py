"""Hit-counting rate limiters built on TTLCache.

- RateLimiter: fixed window. A key may be hit max_hits times within ttl ms
  of its first hit; the count resets when the entry expires. Bursts of up
  to (2 * max_hits - 1) can straddle two adjacent windows.
- WindowRateLimiter: sliding window. Each key keeps its own cache of hit
  stamps, so exactly the hits within the last `window` ms are counted.
"""

from __future__ import annotations

import itertools
import logging
from typing import Dict, Generic, Hashable, Optional, TypeVar

from ttlcache.core.cache import TTLCache
from ttlcache.core.errors import ValidationError
from ttlcache.core.interfaces import Clock
from ttlcache.core.models import NEVER, DisposeReason, Timestamp, is_pos_int

K = TypeVar("K", bound=Hashable)

logger = logging.getLogger(__name__)


class RateLimiter(Generic[K]):
    # Fixed window counted from a key's first hit
    def __init__(
        self,
        *,
        max_hits: int,
        ttl: int,
        max: Timestamp = NEVER,
        clock: Optional[Clock] = None,
    ) -> None:
        if not is_pos_int(max_hits):
            raise ValidationError("max_hits must be a positive integer")
        self._max_hits = int(max_hits)
        # no_update_ttl keeps the window anchored at the first hit
        self._hits: TTLCache[K, int] = TTLCache(
            ttl=ttl,
            max=max,
            no_update_ttl=True,
            update_age_on_get=False,
            check_age_on_get=True,
            clock=clock,
        )

    @property
    def max_hits(self) -> int:
        return self._max_hits

    def hit(self, key: K) -> bool:
        # Returns True if the hit is allowed.
        value = (self._hits.get(key) or 0) + 1
        self._hits.set(key, value)
        if value > self._max_hits:
            logger.debug("Rate limit exceeded for %r (%d hits)", key, value)
            return False
        return True

    def count(self, key: K) -> int:
        return self._hits.get(key) or 0

    def remaining_window(self, key: K) -> Timestamp:
        return self._hits.get_remaining_ttl(key)


class WindowRateLimiter(Generic[K]):
    # Sliding window: one cache of hit stamps per key
    def __init__(self, *, window: int, max_hits: int, clock: Optional[Clock] = None) -> None:
        if not is_pos_int(window):
            raise ValidationError("window must be a positive integer")
        if not is_pos_int(max_hits):
            raise ValidationError("max_hits must be a positive integer")
        self._window = int(window)
        self._max_hits = int(max_hits)
        self._clock = clock
        self._stamps = itertools.count()
        self._windows: Dict[K, TTLCache[int, bool]] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, key: object) -> bool:
        return key in self._windows

    def _new_window(self, key: K) -> TTLCache[int, bool]:
        hits: TTLCache[int, bool]

        def on_dispose(_value: bool, _stamp: int, reason: DisposeReason) -> None:
            # Drop the key once its last hit has aged out
            if reason == "stale" and hits.size == 0 and self._windows.get(key) is hits:
                del self._windows[key]

        hits = TTLCache(ttl=self._window, dispose=on_dispose, clock=self._clock)
        return hits

    def hit(self, key: K) -> bool:
        hits = self._windows.get(key)
        if hits is None:
            hits = self._new_window(key)
        else:
            hits.purge_stale()
        self._windows[key] = hits

        if hits.size >= self._max_hits:
            logger.debug("Rate limit exceeded for %r (%d hits in window)", key, hits.size)
            return False
        hits.set(next(self._stamps), True)
        return True

    def count(self, key: K) -> int:
        hits = self._windows.get(key)
        if hits is None:
            return 0
        hits.purge_stale()
        return hits.size
