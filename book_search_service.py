import logging
import re
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from search_cache import (
    CacheStats,
    CacheWarmer,
    SearchCache,
    SearchFunction,
    SearchRequest,
    SearchResponse,
    WarmupReport,
)
from search_client import RemoteSearchClient
from search_config import SEARCH_CACHE_CONFIG_DEFAULT, SearchCacheConfig
from validation import ValidationError, validate_search_request

logger = logging.getLogger(__name__)


class SearchAnalyticsSink(Protocol):
    """Receives one record per user-issued free-text search."""

    async def track_search(
        self,
        query: str,
        results_count: int,
        search_time_ms: float,
        user_id: Optional[str],
        request: SearchRequest,
    ) -> None:
        ...


@dataclass
class SearchOutcome:
    """Result of BookSearchService.search_books.

    Attributes:
        success: False when validation or the backend failed
        data: Results and total on success
        error: Human readable error on failure
        validation_errors: Rules broken by the request, if any
        cached: True when the data came from the cache
        search_time_ms: Wall time spent serving the search
    """
    success: bool
    data: Optional[SearchResponse] = None
    error: Optional[str] = None
    validation_errors: List[ValidationError] = field(default_factory=list)
    cached: bool = False
    search_time_ms: float = 0.0


class BookSearchService:
    """Read-through book search backed by a SearchCache.

    Requests are validated, answered from the cache when possible, and
    otherwise sent to the search function; fresh results are cached for
    the next caller. Searches with a free-text query are reported to an
    optional analytics sink.

    The service never raises for backend failures; callers get a
    SearchOutcome with ``success=False`` instead.

    Example:
        >>> service = BookSearchService.from_config(SEARCH_CACHE_CONFIG_DEFAULT)
        >>> await service.warmup_search_cache()
        >>> outcome = await service.search_books(SearchRequest(query="dune"))
        >>> outcome.data.total
        3
    """

    def __init__(
        self,
        search_fn: SearchFunction,
        cache: Optional[SearchCache] = None,
        config: Optional[SearchCacheConfig] = None,
        analytics: Optional[SearchAnalyticsSink] = None,
    ):
        """Initialize the search service.

        Args:
            search_fn: Async search function queried on cache misses
            cache: Cache to use (built from config if not provided)
            config: Search cache configuration (uses default if not provided)
            analytics: Optional sink receiving search analytics
        """
        self.config = config or SEARCH_CACHE_CONFIG_DEFAULT
        self.search_fn = search_fn
        self.cache = cache if cache is not None else SearchCache.from_config(self.config)
        self.analytics = analytics
        self._warmer = CacheWarmer(self.cache)

        logger.info(
            "Book search service ready (cache max_size=%d, ttl=%ss)",
            self.cache.max_cache_size,
            self.cache.default_ttl_seconds
        )

    @classmethod
    def from_config(
        cls,
        config: SearchCacheConfig,
        analytics: Optional[SearchAnalyticsSink] = None,
    ) -> "BookSearchService":
        """Build a service that searches the configured PostgREST backend."""
        client = RemoteSearchClient(
            base_url=config.search_api_url,
            api_key=config.search_api_key or None,
            table=config.search_table,
            timeout=config.request_timeout,
        )
        return cls(search_fn=client, config=config, analytics=analytics)

    async def search_books(
        self,
        request: Optional[SearchRequest] = None,
        user_id: Optional[str] = None
    ) -> SearchOutcome:
        """Search books with validation, caching and analytics.

        Args:
            request: Search request (an empty request lists all books)
            user_id: Optional user reported to the analytics sink

        Returns:
            SearchOutcome with the results or the reason for failure
        """
        request = request or SearchRequest()
        start_time = time.perf_counter()

        validation = validate_search_request(request)
        if not validation.is_valid:
            return SearchOutcome(
                success=False,
                error="Invalid search parameters",
                validation_errors=validation.errors,
            )

        cached = self.cache.get(request)
        if cached is not None:
            search_time_ms = (time.perf_counter() - start_time) * 1000
            await self._track(request, cached.total, search_time_ms, user_id)
            return SearchOutcome(
                success=True,
                data=cached,
                cached=True,
                search_time_ms=search_time_ms,
            )

        try:
            response = await self.search_fn(request)
        except Exception as e:
            search_time_ms = (time.perf_counter() - start_time) * 1000
            logger.error("Error in search_books: %s", e)
            await self._track(request, 0, search_time_ms, user_id)
            return SearchOutcome(
                success=False,
                error="An unexpected error occurred while searching",
                search_time_ms=search_time_ms,
            )

        search_time_ms = (time.perf_counter() - start_time) * 1000
        self.cache.set(request, response.results, response.total)
        await self._track(request, response.total, search_time_ms, user_id)

        return SearchOutcome(
            success=True,
            data=SearchResponse(results=list(response.results), total=response.total),
            search_time_ms=search_time_ms,
        )

    async def _track(
        self,
        request: SearchRequest,
        results_count: int,
        search_time_ms: float,
        user_id: Optional[str]
    ) -> None:
        """Report a free-text search to the analytics sink, ignoring sink errors."""
        if self.analytics is None or not request.query:
            return

        try:
            await self.analytics.track_search(
                request.query,
                results_count,
                search_time_ms,
                user_id,
                request,
            )
        except Exception as e:
            logger.warning("Search analytics tracking failed for '%s': %s", request.query, e)

    def clear_search_cache(self) -> int:
        """Drop every cached search. Returns the number of entries removed."""
        return self.cache.clear()

    def invalidate_query(self, text: str) -> int:
        """Drop every cached variant whose key contains ``text`` literally."""
        return self.cache.clear_pattern(re.escape(text))

    async def warmup_search_cache(self) -> WarmupReport:
        """Warm the cache with the common storefront searches."""
        return await self._warmer.warmup_cache(self.search_fn)

    async def prefetch_popular_searches(self, queries: Optional[Sequence[str]] = None) -> WarmupReport:
        """Prefetch free-text queries (defaults to config.popular_queries)."""
        if queries is None:
            queries = self.config.popular_queries
        return await self._warmer.prefetch_popular_searches(list(queries), self.search_fn)

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def get_cache_info(self) -> List[dict]:
        return self.cache.get_cache_info()


def describe_outcome(outcome: SearchOutcome) -> dict:
    """Flatten a SearchOutcome into a JSON-serializable dict."""
    result: dict = {
        "success": outcome.success,
        "cached": outcome.cached,
        "search_time_ms": round(outcome.search_time_ms, 2),
    }
    if outcome.data is not None:
        result["total"] = outcome.data.total
        result["results"] = outcome.data.results
    if outcome.error:
        result["error"] = outcome.error
    if outcome.validation_errors:
        result["validation_errors"] = [
            {"field": e.field, "message": e.message} for e in outcome.validation_errors
        ]
    return result
