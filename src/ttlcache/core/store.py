"""Key -> value storage plus each key's current expiration.

Source of truth for membership and size. The expiration map lets the
cache find a key's current bucket before moving or removing it.
"""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterator, Optional, Tuple, TypeVar

from ttlcache.core.models import Timestamp

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class EntryStore(Generic[K, V]):
    def __init__(self) -> None:
        self._values: Dict[K, V] = {}
        self._expirations: Dict[K, Timestamp] = {}

    def put(self, key: K, value: V, expiration: Timestamp) -> None:
        self._values[key] = value
        self._expirations[key] = expiration

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._values.get(key, default)

    def replace(self, key: K, value: V) -> None:
        # Caller guarantees the key exists; expiration is untouched
        self._values[key] = value

    def remove(self, key: K) -> Tuple[bool, Optional[V]]:
        value = self._values.pop(key, _MISSING)
        if value is _MISSING:
            return False, None
        self._expirations.pop(key, None)
        return True, value

    def contains(self, key: K) -> bool:
        return key in self._values

    def count(self) -> int:
        return len(self._values)

    def expiration_of(self, key: K) -> Optional[Timestamp]:
        return self._expirations.get(key)

    def set_expiration(self, key: K, expiration: Timestamp) -> None:
        self._expirations[key] = expiration

    def items(self) -> Iterator[Tuple[K, V]]:
        return iter(list(self._values.items()))

    def clear(self) -> None:
        self._values.clear()
        self._expirations.clear()
