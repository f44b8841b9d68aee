"""Bounded, time-expiring cache for book search results.

This module provides an in-memory cache that sits in front of the remote
full-text search call. Entries expire after a per-entry TTL and the store
is capped at a maximum entry count.
"""

import json
import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from search_cache.keys import SearchRequest, SearchResponse, make_cache_key
from search_config import (
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_TTL_SECONDS,
    MAX_CACHED_RESULTS,
    MIN_QUERY_LENGTH,
    SearchCacheConfig,
)
from utils import format_size

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """Single cache entry holding a snapshot of search results.

    Attributes:
        results: Copy of the cached result records
        total: Total number of matches reported by the backend
        timestamp: Clock reading at insertion time
        ttl_seconds: Time-to-live for this entry
    """
    results: List[Any]
    total: int
    timestamp: float
    ttl_seconds: float

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_valid(self, now: float) -> bool:
        """Return True while the entry is younger than its TTL."""
        return self.age(now) < self.ttl_seconds

    def to_json_dict(self) -> Dict[str, Any]:
        # Records are shared with the cache, never copied
        return {
            "results": self.results,
            "total": self.total,
            "timestamp": self.timestamp,
            "ttl_seconds": self.ttl_seconds
        }


@dataclass
class CacheStats:
    """Cache statistics for monitoring and debugging.

    Attributes:
        size: Current number of entries in cache
        max_size: Maximum cache size
        hit_rate: Always 0.0, hits and misses are not counted
        memory_usage: Rough estimate of the memory held by entries, in bytes
    """
    size: int = 0
    max_size: int = 0
    hit_rate: float = 0.0
    memory_usage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary for JSON serialization."""
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": round(self.hit_rate, 4),
            "memory_usage": self.memory_usage,
            "memory_usage_human": format_size(self.memory_usage),
        }


class SearchCache:
    """Bounded TTL cache for search results keyed by search request.

    Entries are keyed by ``make_cache_key(request)``. Each entry carries its
    own TTL, so prefetched entries can outlive organically cached ones.

    Expired entries are removed lazily: a ``get`` on an expired key deletes
    it, and every ``set`` sweeps the whole store. There is no background
    timer.

    When the store grows past ``max_cache_size`` the entries with the oldest
    insertion timestamp are evicted. Reading an entry does not refresh its
    position, so this is insertion-order (FIFO) eviction approximating LRU.

    Example:
        >>> cache = SearchCache(default_ttl_seconds=300, max_cache_size=100)
        >>> request = SearchRequest(query="fiction", limit=20)
        >>> cache.set(request, [{"id": "1", "title": "Dune"}], 1)
        >>> cache.get(request)
        SearchResponse(results=[{'id': '1', 'title': 'Dune'}], total=1)

    Attributes:
        default_ttl_seconds: TTL used when ``set`` is not given one
        max_cache_size: Entry-count ceiling triggering eviction
        enable_logging: Whether to emit diagnostic log lines
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_cache_size: int = DEFAULT_MAX_CACHE_SIZE,
        enable_logging: bool = False,
        max_cached_results: int = MAX_CACHED_RESULTS,
        min_query_length: int = MIN_QUERY_LENGTH,
        clock: Clock = time.monotonic,
    ):
        """Initialize the search cache.

        Args:
            default_ttl_seconds: Entry TTL in seconds (default: 5 minutes).
                Non-positive values fall back to the default.
            max_cache_size: Maximum number of entries (default: 100).
                Non-positive values fall back to the default.
            enable_logging: Log hits, misses, evictions and expirations
            max_cached_results: Result lists longer than this are not cached
            min_query_length: Queries shorter than this are not cached
            clock: Zero-argument callable returning the current time in seconds
        """
        self.default_ttl_seconds = default_ttl_seconds if default_ttl_seconds and default_ttl_seconds > 0 else DEFAULT_TTL_SECONDS
        self.max_cache_size = max_cache_size if max_cache_size and max_cache_size > 0 else DEFAULT_MAX_CACHE_SIZE
        self.enable_logging = enable_logging
        self.max_cached_results = max_cached_results
        self.min_query_length = min_query_length
        self._clock = clock

        # Plain dicts keep insertion order; eviction relies on it for ties
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

        logger.debug(
            "SearchCache initialized (max_size=%d, ttl=%ss, logging=%s)",
            self.max_cache_size,
            self.default_ttl_seconds,
            self.enable_logging
        )

    @classmethod
    def from_config(cls, config: SearchCacheConfig, clock: Clock = time.monotonic) -> "SearchCache":
        """Build a cache from a SearchCacheConfig."""
        return cls(
            default_ttl_seconds=config.default_ttl_seconds,
            max_cache_size=config.max_cache_size,
            enable_logging=config.enable_logging,
            max_cached_results=config.max_cached_results,
            min_query_length=config.min_query_length,
            clock=clock,
        )

    def _log(self, msg: str, *args: Any) -> None:
        if self.enable_logging:
            logger.debug(msg, *args)

    def get(self, request: SearchRequest) -> Optional[SearchResponse]:
        """Get cached results if available and not expired.

        Args:
            request: Search request to look up

        Returns:
            SearchResponse with a fresh copy of the cached results,
            or None on a miss or an expired entry
        """
        key = make_cache_key(request)

        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._log("Cache miss: %s", key)
                return None

            if not entry.is_valid(self._clock()):
                del self._cache[key]
                self._log("Expired entry removed: %s", key)
                return None

            self._log("Cache hit: %s", key)
            return SearchResponse(results=list(entry.results), total=entry.total)

    def set(
        self,
        request: SearchRequest,
        results: Sequence[Any],
        total: int,
        ttl_seconds: Optional[float] = None
    ) -> None:
        """Store search results in cache.

        Empty result lists, result lists longer than ``max_cached_results``
        and queries shorter than ``min_query_length`` are silently skipped.

        Args:
            request: Search request the results belong to
            results: Result records; the list is copied
            total: Total number of matches
            ttl_seconds: Optional TTL for this entry (default: default_ttl_seconds)
        """
        if not results or len(results) > self.max_cached_results:
            return

        if isinstance(request.query, str) and 0 < len(request.query) < self.min_query_length:
            return

        key = make_cache_key(request)
        ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else self.default_ttl_seconds

        with self._lock:
            # Re-insert so the dict order follows insertion time
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(
                results=list(results),
                total=total,
                timestamp=self._clock(),
                ttl_seconds=ttl
            )
            self._log("Entry cached: %s (%d results)", key, len(results))

            self._cleanup_expired_entries()
            self._enforce_max_size()

    def _cleanup_expired_entries(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._cache.items() if not entry.is_valid(now)]
        for key in expired:
            del self._cache[key]
            self._log("Expired entry removed: %s", key)

    def _enforce_max_size(self) -> None:
        overflow = len(self._cache) - self.max_cache_size
        if overflow <= 0:
            return

        # sorted() is stable, so equal timestamps keep insertion order
        oldest = sorted(self._cache.items(), key=lambda item: item[1].timestamp)
        for key, _ in oldest[:overflow]:
            del self._cache[key]
            self._log("Oldest entry evicted: %s", key)

    def clear(self) -> int:
        """Remove all entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._log("Cache cleared: %d entries removed", count)
            return count

    def clear_pattern(self, pattern: Union[str, "re.Pattern[str]"]) -> int:
        """Remove every entry whose cache key matches a regular expression.

        Args:
            pattern: Regex string or compiled pattern, searched anywhere in the key

        Returns:
            Number of entries removed
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern

        with self._lock:
            keys_to_remove = [key for key in self._cache if regex.search(key)]
            for key in keys_to_remove:
                del self._cache[key]

        if self.enable_logging:
            logger.info(
                "Cache invalidation: %d entries matching '%s' removed",
                len(keys_to_remove),
                regex.pattern
            )
        return len(keys_to_remove)

    def get_stats(self) -> CacheStats:
        """Get current cache statistics.

        Memory usage is a rough estimate: two bytes per character of each
        entry serialized to JSON.

        Returns:
            CacheStats object with current statistics
        """
        with self._lock:
            memory_usage = 0
            for entry in self._cache.values():
                memory_usage += len(json.dumps(entry.to_json_dict(), default=str)) * 2

            return CacheStats(
                size=len(self._cache),
                max_size=self.max_cache_size,
                hit_rate=0.0,
                memory_usage=memory_usage
            )

    def get_cache_info(self) -> List[Dict[str, Any]]:
        """Get detailed information about cached entries, oldest first.

        Returns:
            List of dictionaries with entry information
        """
        with self._lock:
            now = self._clock()
            info = []
            for key, entry in self._cache.items():
                age = entry.age(now)
                info.append({
                    "key": key,
                    "age_seconds": round(age, 3),
                    "ttl_seconds": entry.ttl_seconds,
                    "remaining_seconds": round(max(entry.ttl_seconds - age, 0.0), 3),
                    "result_count": len(entry.results),
                    "total": entry.total,
                })

            info.sort(key=lambda x: -x["age_seconds"])
            return info

    def __len__(self) -> int:
        """Return current number of cache entries, expired ones included."""
        with self._lock:
            return len(self._cache)

    def __contains__(self, request: SearchRequest) -> bool:
        """Check if a request has a live entry, without removing expired ones."""
        key = make_cache_key(request)
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and entry.is_valid(self._clock())
