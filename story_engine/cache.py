"""Cache for assembled character contexts.

The assembler talks to any object matching the ContextCache protocol, so a
Redis-backed implementation can be swapped in. MemoryContextCache is the
in-process default: per-key TTL, explicit init()/shutdown() lifecycle, and
a single lock so concurrent requests for different adventures never see
each other's entries half-written.

Every key carries a generation that invalidate() bumps. A reader takes the
generation before loading from storage and hands it back to set(); the
write is dropped if an invalidation happened in between, so a context built
from pre-update data never lands after the update's invalidation.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

CONTEXT_KEY_PREFIX = "character-context"


def context_cache_key(adventure_id: str) -> str:
    return f"{CONTEXT_KEY_PREFIX}:{adventure_id}"


class ContextCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def generation(self, key: str) -> int: ...

    def set(self, key: str, value: str, ttl: int, generation: int | None = None) -> None: ...

    def invalidate(self, key: str) -> None: ...


class CacheNotInitializedError(RuntimeError):
    """Raised when the cache is used before init() or after shutdown()."""


class MemoryContextCache:
    """In-memory TTL cache.

    Args:
        max_size: Entries kept before the soonest-expiring quarter is evicted.
        clock:    Time source in seconds; injectable for tests.
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[str, float]] | None = None
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()
        self._max_size = max_size
        self._clock = clock
        self.hits = 0
        self.misses = 0

    def init(self) -> MemoryContextCache:
        with self._lock:
            if self._entries is None:
                self._entries = {}
        return self

    def shutdown(self) -> None:
        with self._lock:
            self._entries = None
            self._generations.clear()
        logger.debug("Context cache shut down")

    def _require_entries(self) -> dict[str, tuple[str, float]]:
        if self._entries is None:
            raise CacheNotInitializedError("Call init() before using the context cache")
        return self._entries

    def get(self, key: str) -> str | None:
        with self._lock:
            entries = self._require_entries()
            entry = entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            value, expiry = entry
            if self._clock() >= expiry:
                del entries[key]
                self.misses += 1
                logger.debug("Cache expired for key %s", key)
                return None
            self.hits += 1
            return value

    def generation(self, key: str) -> int:
        """Current invalidation count for a key (0 until first invalidated)."""
        with self._lock:
            self._require_entries()
            return self._generations.get(key, 0)

    def set(self, key: str, value: str, ttl: int, generation: int | None = None) -> None:
        """Store a value. With a generation, the write is skipped if the key was invalidated since."""
        with self._lock:
            entries = self._require_entries()
            if generation is not None and generation != self._generations.get(key, 0):
                logger.debug("Skipping stale cache write for key %s", key)
                return
            if key not in entries and len(entries) >= self._max_size:
                oldest = sorted(entries, key=lambda k: entries[k][1])[: max(1, len(entries) // 4)]
                for old_key in oldest:
                    del entries[old_key]
            entries[key] = (value, self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._require_entries().pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def stats(self) -> dict[str, Any]:
        with self._lock:
            size = len(self._entries) if self._entries is not None else 0
        total = self.hits + self.misses
        return {
            "size": size,
            "max_size": self._max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": (self.hits / total * 100) if total else 0,
        }
