"""In-memory cache where every entry carries an absolute expiration time.

Entries are kept in an expiration-ordered index so that purging stale
entries and evicting for capacity both walk the soonest-expiring entries
first. A single coalesced timer purges stale entries proactively; reads
can re-validate staleness on their own with check_age_on_get.

Every removal reports the entry through the dispose callback with one of
the reasons "set", "delete", "stale" or "evict". Removed entries are fully
detached from the index and the store before any dispose callback runs,
so a disposer may safely call back into the same cache.
"""

from __future__ import annotations

import logging
import math
from dataclasses import fields
from typing import Any, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

from ttlcache.core.clock import AsyncioClock
from ttlcache.core.errors import ValidationError
from ttlcache.core.expiration_index import ExpirationIndex
from ttlcache.core.interfaces import Clock, Disposer
from ttlcache.core.models import (
    NEVER,
    CacheOptions,
    DisposeReason,
    Timestamp,
    is_pos_int_or_never,
)
from ttlcache.core.scheduler import TimerScheduler
from ttlcache.core.store import EntryStore

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger(__name__)

# Sentinel for "argument not passed", since None is a meaningful ttl default
_UNSET: Any = object()


def _noop_dispose(value: Any, key: Any, reason: DisposeReason) -> None:
    return None


class TTLCache(Generic[K, V]):
    """Expiration-ordered key/value cache with an optional entry limit.

    Options (all keyword-only):
      - max: entry limit, positive int or NEVER (unbounded, the default).
      - ttl: default time-to-live in ms, positive int or NEVER. When omitted,
        every set() must pass its own ttl.
      - update_age_on_get / check_age_on_get: get() defaults.
      - no_update_ttl / no_dispose_on_set: set() defaults.
      - dispose: callback(value, key, reason) run once per removed entry.
      - clock: time source and timer factory (AsyncioClock by default).
    """

    def __init__(
        self,
        *,
        max: Timestamp = NEVER,
        ttl: Optional[Timestamp] = None,
        update_age_on_get: bool = False,
        check_age_on_get: bool = False,
        no_update_ttl: bool = False,
        dispose: Optional[Disposer] = None,
        no_dispose_on_set: bool = False,
        clock: Optional[Clock] = None,
    ) -> None:
        if ttl is not None and not is_pos_int_or_never(ttl):
            raise ValidationError("ttl must be positive integer or NEVER if set")
        if not is_pos_int_or_never(max):
            raise ValidationError("max must be positive integer or NEVER")
        if dispose is not None and not callable(dispose):
            raise ValidationError("dispose must be callable if set")

        self.max = max
        self.ttl = ttl
        self.update_age_on_get = bool(update_age_on_get)
        self.check_age_on_get = bool(check_age_on_get)
        self.no_update_ttl = bool(no_update_ttl)
        self.no_dispose_on_set = bool(no_dispose_on_set)
        self._dispose: Disposer = dispose if dispose is not None else _noop_dispose

        self._clock: Clock = clock if clock is not None else AsyncioClock()
        self._index: ExpirationIndex[K] = ExpirationIndex()
        self._store: EntryStore[K, V] = EntryStore()
        self._scheduler = TimerScheduler(
            clock=self._clock,
            on_fire=self.purge_stale,
            next_target=self._index.earliest_finite,
        )

    @classmethod
    def from_options(cls, options: CacheOptions, **overrides: Any) -> "TTLCache[Any, Any]":
        kwargs = {f.name: getattr(options, f.name) for f in fields(options)}
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def size(self) -> int:
        return self._store.count()

    def __len__(self) -> int:
        return self._store.count()

    def has(self, key: K) -> bool:
        # Membership only: a stale entry the timer hasn't purged yet still counts
        return self._store.contains(key)

    def __contains__(self, key: object) -> bool:
        return self._store.contains(key)  # type: ignore[arg-type]

    def _expiration_for(self, ttl: Timestamp) -> Timestamp:
        if ttl == NEVER:
            return NEVER
        return math.floor(self._clock.now() + ttl)

    def _assign(self, key: K, ttl: Timestamp) -> None:
        # Move an existing key to the tail of the bucket for now + ttl
        current = self._store.expiration_of(key)
        if current is not None:
            self._index.remove(key, current)
        expiration = self._expiration_for(ttl)
        self._store.set_expiration(key, expiration)
        self._index.insert(key, expiration)
        self._scheduler.ensure(expiration)
        if expiration == NEVER:
            self._cancel_timer_if_idle()

    def _cancel_timer_if_idle(self) -> None:
        if self._index.earliest_finite() is None:
            self._scheduler.cancel()

    def cancel_timer(self) -> None:
        """Cancel the pending purge timer, if any.

        Stale entries then stay until purge_stale(), a checking get(), or the
        next insertion that arms a new timer.
        """
        self._scheduler.cancel()

    def set_ttl(self, key: K, ttl: Any = _UNSET) -> None:
        if ttl is _UNSET:
            ttl = self.ttl
        if not is_pos_int_or_never(ttl):
            raise ValidationError("ttl must be positive integer or NEVER")
        if not self._store.contains(key):
            return
        self._assign(key, ttl)

    def get_remaining_ttl(self, key: K) -> Timestamp:
        expiration = self._store.expiration_of(key)
        if expiration is None:
            return 0
        if expiration == NEVER:
            return NEVER
        return max(0, math.ceil(expiration - self._clock.now()))

    def set(
        self,
        key: K,
        value: V,
        *,
        ttl: Any = _UNSET,
        no_update_ttl: Optional[bool] = None,
        no_dispose_on_set: Optional[bool] = None,
    ) -> "TTLCache[K, V]":
        if ttl is _UNSET:
            ttl = self.ttl
        if no_update_ttl is None:
            no_update_ttl = self.no_update_ttl
        if no_dispose_on_set is None:
            no_dispose_on_set = self.no_dispose_on_set

        if not is_pos_int_or_never(ttl):
            raise ValidationError("ttl must be positive integer or NEVER")

        current = self._store.expiration_of(key)
        if current is None:
            expiration = self._expiration_for(ttl)
            self._store.put(key, value, expiration)
            self._index.insert(key, expiration)
            self._scheduler.ensure(expiration)
        else:
            # An already-expired entry is refreshed even under no_update_ttl
            if not no_update_ttl or current <= self._clock.now():
                self._assign(key, ttl)
            old = self._store.get(key)
            if old is not value:
                self._store.replace(key, value)
                # Equal-but-distinct values are stored without a dispose
                if old != value and not no_dispose_on_set:
                    self._dispose(old, key, "set")

        self.purge_to_capacity(keep=key)
        return self

    def get(
        self,
        key: K,
        default: Optional[V] = None,
        *,
        update_age_on_get: Optional[bool] = None,
        ttl: Any = _UNSET,
        check_age_on_get: Optional[bool] = None,
    ) -> Optional[V]:
        if update_age_on_get is None:
            update_age_on_get = self.update_age_on_get
        if check_age_on_get is None:
            check_age_on_get = self.check_age_on_get

        if not self._store.contains(key):
            return default

        # The timer may not have fired yet; trust the clock, not the store
        if check_age_on_get and self.get_remaining_ttl(key) == 0:
            self.delete(key)
            return default

        value = self._store.get(key)
        if update_age_on_get:
            self.set_ttl(key, ttl)
        return value

    def delete(self, key: K) -> bool:
        current = self._store.expiration_of(key)
        if current is None:
            return False
        _, value = self._store.remove(key)
        self._index.remove(key, current)
        try:
            self._dispose(value, key, "delete")
        finally:
            self._cancel_timer_if_idle()
        return True

    def clear(self) -> None:
        # Skip the snapshot entirely when nobody listens for disposals
        entries = list(self.entries()) if self._dispose is not _noop_dispose else []
        self._store.clear()
        self._index.clear()
        self._scheduler.cancel()
        for key, value in entries:
            self._dispose(value, key, "delete")

    def _detach(self, keys: List[K]) -> List[Tuple[K, V]]:
        # Keys were already taken out of the index by the caller
        entries = []
        for key in keys:
            found, value = self._store.remove(key)
            if found:
                entries.append((key, value))
        return entries

    def _dispose_all(self, entries: List[Tuple[K, V]], reason: DisposeReason) -> None:
        for key, value in entries:
            self._dispose(value, key, reason)

    def purge_stale(self) -> bool:
        """Remove every entry whose expiration is at or before now.

        Returns True if anything was removed.
        """
        n = math.ceil(self._clock.now())
        removed = False
        for ts in self._index.due(n):
            entries = self._detach(self._index.pop_bucket(ts))
            if not entries:
                continue
            removed = True
            logger.debug("Purging %d stale entries expiring at %s", len(entries), ts)
            self._dispose_all(entries, "stale")
        self._cancel_timer_if_idle()
        return removed

    def purge_to_capacity(self, *, keep: Any = _UNSET) -> None:
        """Evict soonest-expiring entries until size <= max.

        Buckets are emptied front to back, one bucket per batch. `keep` names
        a key that must survive (the one a set() call just wrote).
        """
        while self.size > self.max:
            overflow = int(self.size - self.max)
            keys: List[K] = []
            for ts in self._index.timestamps():
                if keep is _UNSET:
                    keys = self._index.take(ts, overflow)
                else:
                    keys = self._index.take(ts, overflow, skip=keep)
                if keys:
                    break
            if not keys:
                break
            entries = self._detach(keys)
            logger.debug("Evicting %d entries expiring at %s", len(entries), ts)
            self._dispose_all(entries, "evict")
        self._cancel_timer_if_idle()

    def entries(self) -> Iterator[Tuple[K, V]]:
        """Yield (key, value) from soonest to latest expiring, immortal last."""
        for key in self._index.iter_keys():
            if self._store.contains(key):
                yield key, self._store.get(key)  # type: ignore[misc]

    def keys(self) -> Iterator[K]:
        for key, _ in self.entries():
            yield key

    def values(self) -> Iterator[V]:
        for _, value in self.entries():
            yield value

    def __iter__(self) -> Iterator[Tuple[K, V]]:
        return self.entries()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size}, max={self.max}, ttl={self.ttl})"
