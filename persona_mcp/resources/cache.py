"""
描述: 资源读取缓存 (TTL + LRU)
主要功能:
    - 基于过期时间的缓存
    - 超出容量自动淘汰最久未使用项
    - 按 URI 前缀失效 (写操作后清理对应集合)
    - 命中率统计
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TTLCache:
    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self.stats = CacheStats()

    def get(self, key: str) -> Any | None:
        item = self._store.get(key)
        if item is None:
            self.stats.misses += 1
            return None
        value, expires_at = item
        if expires_at <= self._clock():
            self._store.pop(key, None)
            self.stats.misses += 1
            return None
        self._store.move_to_end(key)
        self.stats.hits += 1
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        expires_at = self._clock() + (self._ttl if ttl_seconds is None else ttl_seconds)
        self._store.pop(key, None)
        self._store[key] = (value, expires_at)
        self._evict()

    def invalidate_prefix(self, prefix: str) -> int:
        keys = [key for key in self._store if key.startswith(prefix)]
        for key in keys:
            self._store.pop(key, None)
        return len(keys)

    def clear(self) -> None:
        self._store.clear()

    def snapshot(self) -> dict[str, Any]:
        return {
            "size": len(self._store),
            "max_size": self._max_size,
            "ttl_seconds": self._ttl,
            "hits": self.stats.hits,
            "misses": self.stats.misses,
            "evictions": self.stats.evictions,
            "hit_rate": round(self.stats.hit_rate, 4),
        }

    def __len__(self) -> int:
        return len(self._store)

    def _evict(self) -> None:
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)
            self.stats.evictions += 1
