"""Tests for the in-memory context cache."""

import pytest

from story_engine.cache import CacheNotInitializedError, MemoryContextCache, context_cache_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timed_cache(clock):
    c = MemoryContextCache(clock=clock).init()
    yield c
    c.shutdown()


def test_context_cache_key():
    assert context_cache_key("adv1") == "character-context:adv1"


def test_get_missing(timed_cache):
    assert timed_cache.get("k") is None


def test_set_and_get(timed_cache):
    timed_cache.set("k", "value", 300)
    assert timed_cache.get("k") == "value"


def test_entry_expires_after_ttl(timed_cache, clock):
    timed_cache.set("k", "value", 300)
    clock.now += 299
    assert timed_cache.get("k") == "value"
    clock.now += 1
    assert timed_cache.get("k") is None


def test_invalidate(timed_cache):
    timed_cache.set("k", "value", 300)
    timed_cache.invalidate("k")
    assert timed_cache.get("k") is None
    timed_cache.invalidate("never-set")


def test_keys_are_independent(timed_cache):
    timed_cache.set(context_cache_key("a"), "A", 300)
    timed_cache.set(context_cache_key("b"), "B", 300)
    timed_cache.invalidate(context_cache_key("a"))
    assert timed_cache.get(context_cache_key("b")) == "B"


def test_eviction_when_full(clock):
    c = MemoryContextCache(max_size=4, clock=clock).init()
    for i in range(4):
        c.set(f"k{i}", str(i), 100 + i)
    c.set("k4", "4", 500)
    assert c.get("k0") is None
    assert c.get("k4") == "4"
    assert c.stats()["size"] == 4


def test_stats(timed_cache):
    timed_cache.set("k", "value", 300)
    timed_cache.get("k")
    timed_cache.get("missing")
    stats = timed_cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 50
    assert stats["size"] == 1


def test_use_before_init_raises():
    c = MemoryContextCache()
    with pytest.raises(CacheNotInitializedError):
        c.get("k")


def test_use_after_shutdown_raises():
    c = MemoryContextCache().init()
    c.shutdown()
    with pytest.raises(CacheNotInitializedError):
        c.set("k", "v", 10)
    assert c.stats()["size"] == 0


def test_init_is_idempotent():
    c = MemoryContextCache().init()
    c.set("k", "v", 10)
    assert c.init() is c
    assert c.get("k") == "v"


def test_generation_starts_at_zero_and_bumps_on_invalidate(timed_cache):
    assert timed_cache.generation("k") == 0
    timed_cache.invalidate("k")
    timed_cache.invalidate("k")
    assert timed_cache.generation("k") == 2
    assert timed_cache.generation("other") == 0


def test_stale_generation_write_is_skipped(timed_cache):
    seen = timed_cache.generation("k")
    timed_cache.invalidate("k")
    timed_cache.set("k", "stale", 300, seen)
    assert timed_cache.get("k") is None

    timed_cache.set("k", "fresh", 300, timed_cache.generation("k"))
    assert timed_cache.get("k") == "fresh"


def test_set_without_generation_always_writes(timed_cache):
    timed_cache.invalidate("k")
    timed_cache.set("k", "value", 300)
    assert timed_cache.get("k") == "value"
