"""Caching utilities for market-data responses.

Provides a size-bounded LRU cache whose entries also expire after a
per-entry time-to-live, so repeated chain/quote requests inside one scan
cycle don't hit the provider twice.
"""

import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple
from collections import OrderedDict
import logging

from .error_handling import safe_divide

logger = logging.getLogger("lce_scanner.cache")


class ResponseCache:
    """TTL cache for provider responses.

    Uses LRU (Least Recently Used) eviction policy when cache is full and
    drops entries older than their time-to-live on access.
    """

    def __init__(self, maxsize: int = 256, clock: Callable[[], float] = time.monotonic):
        """Initialize response cache.

        Args:
            maxsize: Maximum number of cached responses
            clock: Monotonic clock in seconds, injectable for tests
        """
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self._cache: OrderedDict[Hashable, Tuple[float, Any]] = OrderedDict()
        self.maxsize = maxsize
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def get_or_fetch(
        self,
        key: Hashable,
        ttl_seconds: float,
        fetch_func: Callable[[], Any],
    ) -> Any:
        """Get a cached response or fetch it if missing or stale.

        Args:
            key: Hashable cache key, e.g. (method, path, params)
            ttl_seconds: Maximum age of a cached response; <= 0 disables caching
            fetch_func: Function performing the request on a miss

        Returns:
            Cached or freshly fetched response

        Example:
            >>> cache = ResponseCache()
            >>> chain = cache.get_or_fetch(
            >>>     ("GET", "/marketdata/v1/chains", (("symbol", "SPY"),)),
            >>>     ttl_seconds=30,
            >>>     fetch_func=lambda: session.get(url).json(),
            >>> )
        """
        if ttl_seconds <= 0:
            return fetch_func()

        now = self._clock()
        entry = self._cache.get(key)
        if entry is not None:
            stored_at, value = entry
            if now - stored_at < ttl_seconds:
                self._hits += 1
                self._cache.move_to_end(key)
                logger.debug("Cache hit for %s", key)
                return value
            del self._cache[key]

        self._misses += 1
        logger.debug("Cache miss for %s", key)

        value = fetch_func()

        if len(self._cache) >= self.maxsize:
            evicted_key = next(iter(self._cache))
            del self._cache[evicted_key]
            logger.debug("Cache full, evicted %s", evicted_key)

        self._cache[key] = (self._clock(), value)
        return value

    def purge_expired(self, max_age_seconds: float) -> int:
        """Drop entries older than max_age_seconds.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        stale = [k for k, (stored_at, _) in self._cache.items() if now - stored_at > max_age_seconds]
        for key in stale:
            del self._cache[key]
        if stale:
            logger.debug("Purged %d stale cache entries, %d remaining", len(stale), len(self._cache))
        return len(stale)

    def clear(self):
        """Clear all cached entries."""
        self._cache.clear()
        logger.info("Response cache cleared")

    def stats(self) -> Dict[str, int | float]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = safe_divide(self._hits, total_requests) * 100

        return {
            'size': len(self._cache),
            'maxsize': self.maxsize,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': hit_rate,
        }

    def __len__(self) -> int:
        return len(self._cache)

    def __repr__(self) -> str:
        stats = self.stats()
        return (
            f"ResponseCache(size={stats['size']}/{stats['maxsize']}, "
            f"hits={stats['hits']}, misses={stats['misses']}, "
            f"hit_rate={stats['hit_rate']:.1f}%)"
        )


def make_cache_key(method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Tuple:
    """Build a hashable cache key from a request description."""
    return (method.upper(), path, tuple(sorted((params or {}).items())))
