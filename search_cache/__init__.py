"""Search result caching for the bookstore catalogue.

Provides a bounded, time-expiring cache in front of the remote
full-text search call, plus a warmer that prefetches anticipated
searches.
"""

from search_cache.cache import SearchCache, CacheEntry, CacheStats
from search_cache.keys import SearchRequest, SearchResponse, make_cache_key
from search_cache.warmup import CacheWarmer, WarmupReport, SearchFunction, COMMON_SEARCHES

__all__ = [
    "SearchCache",
    "CacheEntry",
    "CacheStats",
    "SearchRequest",
    "SearchResponse",
    "make_cache_key",
    "CacheWarmer",
    "WarmupReport",
    "SearchFunction",
    "COMMON_SEARCHES",
]
