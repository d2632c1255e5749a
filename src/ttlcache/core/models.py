"""Shared value types for the cache.

Includes the never-expires sentinel, the closed set of dispose reasons,
the construction options model and the small validators used wherever a
ttl or max is accepted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Union


# Expiration/ttl value for entries that never expire (also "unbounded" max)
NEVER = math.inf

DisposeReason = Literal["set", "delete", "stale", "evict"]

Timestamp = Union[int, float]


def is_pos_int(n: Any) -> bool:
    # bool is an int subclass but never a valid count
    if isinstance(n, bool):
        return False
    if isinstance(n, int):
        return n > 0
    return isinstance(n, float) and math.isfinite(n) and n.is_integer() and n > 0


def is_pos_int_or_never(n: Any) -> bool:
    return is_pos_int(n) or (isinstance(n, float) and n == NEVER)


@dataclass(frozen=True)
class CacheOptions:
    """Construction options for a TTLCache.

    Field groups:
    - Capacity: max
    - Expiration: ttl, update_age_on_get, check_age_on_get, no_update_ttl
    - Notification: dispose, no_dispose_on_set
    """

    max: Timestamp = NEVER

    ttl: Optional[Timestamp] = None
    update_age_on_get: bool = False
    check_age_on_get: bool = False
    no_update_ttl: bool = False

    dispose: Optional[Callable[[Any, Any, DisposeReason], object]] = None
    no_dispose_on_set: bool = False
