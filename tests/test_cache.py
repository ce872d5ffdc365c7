import pytest

from skywatch.cache import TTLCache, make_key


def test_make_key_normalizes_strings():
    assert make_key("weather", " Manila ") == make_key("weather", "manila")
    assert make_key("forecast", "q=cebu", "days=5") == "forecast:q=cebu:days=5"


def test_make_key_skips_none_and_stringifies():
    assert make_key("historical", 9.65, None, 123.85) == "historical:9.65:123.85"


def test_get_returns_value_before_expiry(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("k", {"a": 1})
    clock.advance(59.9)
    assert cache.get("k") == {"a": 1}
    assert "k" in cache


def test_entry_expires_at_ttl(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("k", "v")
    clock.advance(60)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_per_entry_ttl_overrides_default(clock):
    cache = TTLCache(default_ttl=1800, clock=clock)
    cache.set("short", 1, ttl=5)
    cache.set("long", 2)
    clock.advance(10)
    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_lru_eviction(clock):
    cache = TTLCache(max_entries=2, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # "b" is now least recently used
    cache.set("c", 3)
    assert "b" not in cache
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_clear(clock):
    cache = TTLCache(clock=clock)
    cache.set("a", 1)
    cache.clear()
    assert cache.get("a") is None


def test_invalid_bound():
    with pytest.raises(ValueError):
        TTLCache(max_entries=0)
