"""Cache warm-up and prefetching.

Populates a SearchCache ahead of organic traffic by running anticipated
searches concurrently. This is best effort: individual failures are
logged and counted, never raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Sequence, Tuple

from search_cache.cache import SearchCache
from search_cache.keys import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

SearchFunction = Callable[[SearchRequest], Awaitable[SearchResponse]]

PREFETCH_LIMIT = 20
PREFETCH_TTL_MULTIPLIER = 2
WARMUP_TTL_MULTIPLIER = 3

# Filter combinations most storefront visitors start from
COMMON_SEARCHES: Tuple[SearchRequest, ...] = (
    # Popular categories
    SearchRequest(category="Fiction", limit=PREFETCH_LIMIT),
    SearchRequest(category="Non-Fiction", limit=PREFETCH_LIMIT),
    SearchRequest(category="Science Fiction", limit=PREFETCH_LIMIT),
    # Free books
    SearchRequest(is_free=True, limit=PREFETCH_LIMIT),
    # Recent books
    SearchRequest(sort_by="created_at", sort_order="desc", limit=PREFETCH_LIMIT),
    # Popular price ranges
    SearchRequest(price_range=(0, 10), limit=PREFETCH_LIMIT),
    SearchRequest(price_range=(10, 25), limit=PREFETCH_LIMIT),
)


@dataclass
class WarmupReport:
    """Outcome of a prefetch or warm-up pass.

    Attributes:
        attempted: Number of searches considered
        skipped: Searches already cached, not re-fetched
        succeeded: Searches fetched and handed to the cache
        failed: Searches whose search function raised
        failures: (label, error message) for each failed search
    """
    attempted: int = 0
    skipped: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)


def popular_search_request(query: str) -> SearchRequest:
    """Canonical request used when prefetching a free-text query."""
    return SearchRequest(
        query=query,
        limit=PREFETCH_LIMIT,
        offset=0,
        sort_by="relevance",
        sort_order="desc",
    )


class CacheWarmer:
    """Prefetches anticipated searches into a SearchCache.

    Every prefetch runs concurrently; the call returns once all of them
    have settled. A failing search function never aborts the others.

    Example:
        >>> warmer = CacheWarmer(cache)
        >>> report = await warmer.prefetch_popular_searches(
        ...     ["fantasy", "history"], client.search
        ... )
        >>> report.succeeded
        2
    """

    def __init__(self, cache: SearchCache):
        self.cache = cache

    async def prefetch_popular_searches(
        self,
        queries: Sequence[str],
        search_fn: SearchFunction
    ) -> WarmupReport:
        """Prefetch free-text queries with twice the default TTL.

        Args:
            queries: Free-text queries to prefetch
            search_fn: Async search function returning a SearchResponse

        Returns:
            WarmupReport describing what was fetched
        """
        ttl = self.cache.default_ttl_seconds * PREFETCH_TTL_MULTIPLIER
        requests = [(query, popular_search_request(query)) for query in queries]
        report = await self._populate(requests, search_fn, ttl)

        if self.cache.enable_logging:
            logger.info(
                "Prefetch completed: %d fetched, %d skipped, %d failed",
                report.succeeded, report.skipped, report.failed
            )
        return report

    async def warmup_cache(self, search_fn: SearchFunction) -> WarmupReport:
        """Warm the cache with COMMON_SEARCHES using three times the default TTL.

        Args:
            search_fn: Async search function returning a SearchResponse

        Returns:
            WarmupReport describing what was fetched
        """
        ttl = self.cache.default_ttl_seconds * WARMUP_TTL_MULTIPLIER
        requests = [(repr(request), request) for request in COMMON_SEARCHES]
        report = await self._populate(requests, search_fn, ttl)

        if self.cache.enable_logging:
            logger.info(
                "Cache warmup completed: %d fetched, %d skipped, %d failed",
                report.succeeded, report.skipped, report.failed
            )
        return report

    async def _populate(
        self,
        requests: List[Tuple[str, SearchRequest]],
        search_fn: SearchFunction,
        ttl: float
    ) -> WarmupReport:
        """Fetch every uncached request concurrently and settle all of them."""
        report = WarmupReport(attempted=len(requests))

        pending: List[Tuple[str, SearchRequest]] = []
        for label, request in requests:
            if self.cache.get(request) is not None:
                report.skipped += 1
            else:
                pending.append((label, request))

        tasks = [self._fetch_one(request, search_fn, ttl) for _, request in pending]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for (label, _), outcome in zip(pending, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                report.failed += 1
                report.failures.append((label, str(outcome)))
                if self.cache.enable_logging:
                    logger.warning("Prefetch failed for %s: %s", label, outcome)
            else:
                report.succeeded += 1
                if self.cache.enable_logging:
                    logger.debug("Prefetched: %s", label)

        return report

    async def _fetch_one(
        self,
        request: SearchRequest,
        search_fn: SearchFunction,
        ttl: float
    ) -> None:
        response = await search_fn(request)
        self.cache.set(request, response.results, response.total, ttl_seconds=ttl)
