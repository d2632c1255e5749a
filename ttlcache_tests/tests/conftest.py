import pytest

from ttlcache.core.clock import ManualClock


class DisposeRecorder:
    """Collects dispose callbacks as (value, key, reason) tuples."""

    def __init__(self) -> None:
        self.calls = []

    def __call__(self, value, key, reason):
        self.calls.append((value, key, reason))

    def clear(self) -> None:
        self.calls.clear()


@pytest.fixture
def clock():
    # Start at 1 so no expiration ever lands on 0
    return ManualClock(start=1)


@pytest.fixture
def disposals():
    return DisposeRecorder()
