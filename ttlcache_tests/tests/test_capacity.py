import logging

from ttlcache.core.cache import TTLCache
from ttlcache.core.models import NEVER


def test_eviction_removes_soonest_existing_entry(clock, disposals):
    c = TTLCache(max=1, dispose=disposals, clock=clock)
    c.set("A", "a", ttl=100)
    c.set("B", "b", ttl=50)

    assert disposals.calls == [("a", "A", "evict")]
    assert list(c.keys()) == ["B"]
    assert c.size == 1


def test_eviction_takes_oldest_keys_of_a_bucket_first(clock, disposals):
    c = TTLCache(max=3, ttl=10, dispose=disposals, clock=clock)
    for k in "abcde":
        c.set(k, k.upper())

    assert disposals.calls == [("A", "a", "evict"), ("B", "b", "evict")]
    assert list(c.keys()) == ["c", "d", "e"]


def test_eviction_walks_whole_buckets_then_partial(clock, disposals):
    c = TTLCache(max=10, dispose=disposals, clock=clock)
    c.set("x1", 1, ttl=5)
    c.set("x2", 2, ttl=5)
    c.set("y1", 3, ttl=6)
    c.set("y2", 4, ttl=6)
    c.set("z", 5, ttl=7)

    c.max = 2
    c.purge_to_capacity()

    assert [k for _, k, _ in disposals.calls] == ["x1", "x2", "y1"]
    assert list(c.keys()) == ["y2", "z"]


def test_eviction_reaches_immortal_bucket_last(clock, disposals):
    c = TTLCache(max=2, dispose=disposals, clock=clock)
    c.set("forever", 1, ttl=NEVER)
    c.set("soon", 2, ttl=10)
    c.set("later", 3, ttl=20)

    assert disposals.calls == [(2, "soon", "evict")]

    c.set("also-forever", 4, ttl=NEVER)
    assert disposals.calls[-1] == (3, "later", "evict")

    c.set("third-forever", 5, ttl=NEVER)
    assert disposals.calls[-1] == (1, "forever", "evict")
    assert list(c.keys()) == ["also-forever", "third-forever"]


def test_eviction_never_exceeds_max_with_distinct_ttls(clock):
    c = TTLCache(max=3, clock=clock)
    for i in range(20):
        c.set(i, i, ttl=100 - i)
        assert c.size <= 3

    # every insert is the soonest to expire, yet it survives its own set()
    assert 19 in c


def test_eviction_cancels_timer_when_no_finite_entries_remain(clock):
    c = TTLCache(max=1, clock=clock)
    c.set("soon", 1, ttl=10)
    assert clock.pending == 1

    c.set("forever", 2, ttl=NEVER)
    assert list(c.keys()) == ["forever"]
    assert clock.pending == 0


def test_eviction_is_logged_at_debug(clock, caplog):
    caplog.set_level(logging.DEBUG, logger="ttlcache.core.cache")
    c = TTLCache(max=1, ttl=10, clock=clock)
    c.set("a", 1)
    c.set("b", 2)

    assert "Evicting 1 entries" in caplog.text
