"""Core protocol and interface definitions.

Defines the Clock capability consumed by the timer scheduler and the
cache (current time plus a cancellable deferred callback), and the
Disposer callback signature.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from ttlcache.core.models import DisposeReason


class TimerHandle(Protocol):
    """A pending deferred callback. cancel() must be idempotent."""
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    """Contract for any time source (asyncio loop, manual, etc.)."""
    def now(self) -> float:
        ...

    def after(
        self,
        delay_ms: float,
        callback: Callable[[], None],
    ) -> Optional[TimerHandle]:
        ...


Disposer = Callable[[Any, Any, DisposeReason], object]
