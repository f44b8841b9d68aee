from dataclasses import dataclass, field
from typing import List

SEARCH_API_URL = "http://localhost:54321"

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_CACHE_SIZE = 100

# Result lists longer than this are never cached
MAX_CACHED_RESULTS = 100

# Shorter free-text queries change too often to be worth caching
MIN_QUERY_LENGTH = 2


@dataclass
class SearchCacheConfig:
    """Search cache configuration model.

    Attributes:
        default_ttl_seconds: Time-to-live applied to organically cached entries.
            Prefetched entries live 2x this, warm-up entries 3x.
        max_cache_size: Maximum number of cached search results before the
            oldest inserted entries are evicted
        enable_logging: Emit diagnostic log lines on hit/miss/evict/expire
        max_cached_results: Result lists longer than this are not cached
        min_query_length: Free-text queries shorter than this are not cached
        search_api_url: Base URL of the PostgREST search backend
        search_table: Table queried by the remote search client
        search_api_key: Optional API key sent to the search backend
        request_timeout: HTTP request timeout in seconds
        popular_queries: Free-text queries prefetched by default

    Example:
        >>> config = SearchCacheConfig(
        ...     default_ttl_seconds=300,
        ...     max_cache_size=100,
        ...     enable_logging=True,
        ...     popular_queries=["fantasy", "history"]
        ... )
    """
    default_ttl_seconds: float = field(default=DEFAULT_TTL_SECONDS)
    max_cache_size: int = field(default=DEFAULT_MAX_CACHE_SIZE)
    enable_logging: bool = field(default=False)
    max_cached_results: int = field(default=MAX_CACHED_RESULTS)
    min_query_length: int = field(default=MIN_QUERY_LENGTH)
    search_api_url: str = field(default=SEARCH_API_URL)
    search_table: str = field(default="books")
    search_api_key: str = field(default="")
    request_timeout: float = field(default=30.0)
    popular_queries: List[str] = field(default_factory=list)


SEARCH_CACHE_CONFIG_DEFAULT = SearchCacheConfig()

# Verbose, short-lived cache for local development
SEARCH_CACHE_CONFIG_DEVELOPMENT = SearchCacheConfig(
    default_ttl_seconds=60,      # 1 minute so catalogue edits show up quickly
    max_cache_size=50,
    enable_logging=True,         # Log every hit/miss/evict
)

# Larger, longer-lived cache for storefront traffic
SEARCH_CACHE_CONFIG_HIGH_TRAFFIC = SearchCacheConfig(
    default_ttl_seconds=15 * 60,  # 15 minutes
    max_cache_size=500,
    enable_logging=False,
    popular_queries=["fiction", "romance", "mystery", "history", "science"],
)
