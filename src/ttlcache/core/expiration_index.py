"""Expiration-ordered index of cache keys.

Keys are grouped into buckets by their exact expiration timestamp. Finite
buckets are kept in ascending timestamp order (a sorted list of timestamps
maintained with bisect); keys that never expire live in one extra bucket
that always sorts last. Each bucket is an insertion-ordered dict used as
an ordered set, so the oldest assignment at a timestamp is at the front.

Pure data structure: no clock, no dispose, no policy.
"""

from __future__ import annotations

import bisect
from typing import Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

from ttlcache.core.models import NEVER, Timestamp

K = TypeVar("K", bound=Hashable)

_NO_KEY = object()


class ExpirationIndex(Generic[K]):
    def __init__(self) -> None:
        self._buckets: Dict[Timestamp, Dict[K, None]] = {}
        self._order: List[Timestamp] = []
        self._never: Dict[K, None] = {}
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def _bucket(self, ts: Timestamp) -> Optional[Dict[K, None]]:
        if ts == NEVER:
            return self._never if self._never else None
        return self._buckets.get(ts)

    def _drop_bucket(self, ts: Timestamp) -> None:
        if ts == NEVER:
            self._never = {}
            return
        del self._buckets[ts]
        i = bisect.bisect_left(self._order, ts)
        del self._order[i]

    def insert(self, key: K, ts: Timestamp) -> None:
        if ts == NEVER:
            bucket = self._never
        else:
            bucket = self._buckets.get(ts)
            if bucket is None:
                bucket = self._buckets[ts] = {}
                bisect.insort(self._order, ts)
        # Re-inserting moves the key to the tail of its bucket
        if key in bucket:
            del bucket[key]
            self._count -= 1
        bucket[key] = None
        self._count += 1

    def remove(self, key: K, ts: Timestamp) -> bool:
        bucket = self._bucket(ts)
        if bucket is None or key not in bucket:
            return False
        del bucket[key]
        self._count -= 1
        if not bucket:
            self._drop_bucket(ts)
        return True

    def earliest_finite(self) -> Optional[Timestamp]:
        return self._order[0] if self._order else None

    def timestamps(self) -> List[Timestamp]:
        """Non-empty bucket timestamps, ascending, NEVER last."""
        if self._never:
            return self._order + [NEVER]
        return list(self._order)

    def due(self, now: Timestamp) -> List[Timestamp]:
        """Finite timestamps at or before now, ascending."""
        return self._order[: bisect.bisect_right(self._order, now)]

    def pop_bucket(self, ts: Timestamp) -> List[K]:
        bucket = self._bucket(ts)
        if bucket is None:
            return []
        keys = list(bucket)
        self._drop_bucket(ts)
        self._count -= len(keys)
        return keys

    def take(self, ts: Timestamp, n: int, *, skip: object = _NO_KEY) -> List[K]:
        """Remove and return up to n of the oldest keys of a bucket.

        A key equal to `skip` stays where it is.
        """
        bucket = self._bucket(ts)
        if bucket is None:
            return []
        keys: List[K] = []
        for key in bucket:
            if len(keys) >= n:
                break
            if skip is not _NO_KEY and key == skip:
                continue
            keys.append(key)
        for key in keys:
            del bucket[key]
        self._count -= len(keys)
        if not bucket:
            self._drop_bucket(ts)
        return keys

    def iter_keys(self) -> Iterator[K]:
        # Each bucket is copied before yielding so callers may mutate the index
        for ts in list(self._order):
            bucket = self._buckets.get(ts)
            if bucket:
                yield from list(bucket)
        yield from list(self._never)

    def clear(self) -> None:
        self._buckets.clear()
        self._order.clear()
        self._never = {}
        self._count = 0
