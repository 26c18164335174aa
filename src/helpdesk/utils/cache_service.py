"""
In-Memory LRU Cache Service.

Keeps knowledge-base lookups off the database between warm Lambda
invocations. Writers call ``clear()`` so readers never see stale entries
for longer than one request.
"""

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Hashable, Optional, Tuple


class LRUCache:
    """Thread-safe LRU cache with TTL support."""

    def __init__(
        self,
        max_size: int = 128,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: "OrderedDict[Hashable, Tuple[Any, float]]" = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache if exists and not expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, stored_at = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._cache[key]
                self._misses += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Set value in cache, evicting the least recently used entries."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (value, self._clock())

            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or load, store and return it."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def delete(self, key: Hashable) -> bool:
        """Delete key from cache."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
            }
