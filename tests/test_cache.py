from __future__ import annotations

from persona_mcp.resources.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("a", 1)
    assert cache.get("a") == 1
    clock.now += 10
    assert cache.get("a") is None
    assert cache.stats.hits == 1
    assert cache.stats.misses == 1


def test_lru_eviction() -> None:
    cache = TTLCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert cache.stats.evictions == 1


def test_invalidate_prefix() -> None:
    cache = TTLCache()
    cache.set("persona://accounts", 1)
    cache.set("persona://accounts/act_1", 2)
    cache.set("persona://cases", 3)
    assert cache.invalidate_prefix("persona://accounts") == 2
    assert len(cache) == 1


def test_snapshot() -> None:
    cache = TTLCache(max_size=5, ttl_seconds=60)
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")
    snapshot = cache.snapshot()
    assert snapshot["size"] == 1
    assert snapshot["hit_rate"] == 0.5
