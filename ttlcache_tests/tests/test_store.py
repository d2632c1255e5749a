from ttlcache.core.models import NEVER
from ttlcache.core.store import EntryStore


def test_put_get_remove():
    s = EntryStore()
    s.put("a", 1, 10)

    assert s.contains("a") is True
    assert s.get("a") == 1
    assert s.expiration_of("a") == 10
    assert s.count() == 1

    assert s.remove("a") == (True, 1)
    assert s.contains("a") is False
    assert s.expiration_of("a") is None
    assert s.remove("a") == (False, None)


def test_none_values_are_still_members():
    s = EntryStore()
    s.put("n", None, NEVER)

    assert s.contains("n") is True
    assert s.get("n", "default") is None
    assert s.remove("n") == (True, None)


def test_replace_keeps_expiration():
    s = EntryStore()
    s.put("a", 1, 10)
    s.replace("a", 2)
    s.set_expiration("a", 20)

    assert s.get("a") == 2
    assert s.expiration_of("a") == 20
    assert list(s.items()) == [("a", 2)]

    s.clear()
    assert s.count() == 0
