"""Tests for cache warm-up and prefetching."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from search_cache import (
    COMMON_SEARCHES,
    CacheWarmer,
    SearchCache,
    SearchRequest,
    SearchResponse,
)
from search_cache.warmup import popular_search_request


@pytest.fixture
def warm_cache(clock):
    return SearchCache(default_ttl_seconds=10, max_cache_size=50, clock=clock)


class TestPrefetchPopularSearches:
    """Test cases for CacheWarmer.prefetch_popular_searches."""

    def test_popular_search_request_shape(self):
        assert popular_search_request("fiction") == SearchRequest(
            query="fiction",
            limit=20,
            offset=0,
            sort_by="relevance",
            sort_order="desc",
        )

    @pytest.mark.asyncio
    async def test_prefetch_calls_search_for_each_query(self, warm_cache, book):
        """Test every query is searched and cached."""
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))
        warmer = CacheWarmer(warm_cache)

        report = await warmer.prefetch_popular_searches(["fiction", "science", "history"], search_fn)

        assert search_fn.call_count == 3
        search_fn.assert_any_call(popular_search_request("fiction"))
        assert report.attempted == 3
        assert report.succeeded == 3
        assert report.failed == 0
        for query in ("fiction", "science", "history"):
            assert warm_cache.get(popular_search_request(query)) is not None

    @pytest.mark.asyncio
    async def test_prefetch_uses_double_ttl(self, warm_cache, clock, book):
        """Test prefetched entries live twice the default TTL."""
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))
        await CacheWarmer(warm_cache).prefetch_popular_searches(["fiction"], search_fn)

        clock.advance(19)
        assert warm_cache.get(popular_search_request("fiction")) is not None
        clock.advance(1)
        assert warm_cache.get(popular_search_request("fiction")) is None

    @pytest.mark.asyncio
    async def test_prefetch_skips_cached_queries(self, warm_cache, book):
        """Test already cached queries are not fetched again."""
        warm_cache.set(popular_search_request("fiction"), [book], 1)
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))

        report = await CacheWarmer(warm_cache).prefetch_popular_searches(["fiction", "science"], search_fn)

        search_fn.assert_called_once_with(popular_search_request("science"))
        assert report.skipped == 1
        assert report.succeeded == 1

    @pytest.mark.asyncio
    async def test_prefetch_failure_does_not_abort_others(self, warm_cache, book):
        """Test one failing search leaves the others cached."""
        async def search_fn(request):
            if request.query == "broken":
                raise RuntimeError("backend down")
            return SearchResponse(results=[book], total=1)

        report = await CacheWarmer(warm_cache).prefetch_popular_searches(
            ["fiction", "broken", "history"], search_fn
        )

        assert report.succeeded == 2
        assert report.failed == 1
        assert report.failures == [("broken", "backend down")]
        assert warm_cache.get(popular_search_request("fiction")) is not None
        assert warm_cache.get(popular_search_request("history")) is not None
        assert warm_cache.get(popular_search_request("broken")) is None

    @pytest.mark.asyncio
    async def test_prefetch_runs_concurrently(self, warm_cache, book):
        """Test all searches are in flight before any completes."""
        in_flight = 0
        peak = 0
        release = asyncio.Event()

        async def search_fn(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            if peak == 3:
                release.set()
            await release.wait()
            in_flight -= 1
            return SearchResponse(results=[book], total=1)

        await asyncio.wait_for(
            CacheWarmer(warm_cache).prefetch_popular_searches(["one", "two", "three"], search_fn),
            timeout=5,
        )

        assert peak == 3

    @pytest.mark.asyncio
    async def test_prefetch_failure_logged_when_enabled(self, clock, caplog):
        """Test failures are logged only when logging is enabled."""
        search_fn = AsyncMock(side_effect=RuntimeError("boom"))

        quiet = SearchCache(clock=clock)
        with caplog.at_level("DEBUG", logger="search_cache.warmup"):
            await CacheWarmer(quiet).prefetch_popular_searches(["fiction"], search_fn)
        assert "Prefetch failed" not in caplog.text

        loud = SearchCache(enable_logging=True, clock=clock)
        with caplog.at_level("DEBUG", logger="search_cache.warmup"):
            await CacheWarmer(loud).prefetch_popular_searches(["fiction"], search_fn)
        assert "Prefetch failed" in caplog.text

    @pytest.mark.asyncio
    async def test_prefetch_empty_results_not_cached(self, warm_cache):
        """Test prefetched empty results follow the exclusion policy."""
        search_fn = AsyncMock(return_value=SearchResponse(results=[], total=0))

        report = await CacheWarmer(warm_cache).prefetch_popular_searches(["fiction"], search_fn)

        assert report.succeeded == 1
        assert len(warm_cache) == 0

    @pytest.mark.asyncio
    async def test_prefetch_no_queries(self, warm_cache):
        search_fn = AsyncMock()
        report = await CacheWarmer(warm_cache).prefetch_popular_searches([], search_fn)
        assert report.attempted == 0
        search_fn.assert_not_called()


class TestWarmupCache:
    """Test cases for CacheWarmer.warmup_cache."""

    def test_common_searches(self):
        """Test the fixed warm-up list covers categories, free, recent and price bands."""
        assert SearchRequest(category="Fiction", limit=20) in COMMON_SEARCHES
        assert SearchRequest(is_free=True, limit=20) in COMMON_SEARCHES
        assert SearchRequest(sort_by="created_at", sort_order="desc", limit=20) in COMMON_SEARCHES
        assert SearchRequest(price_range=(10, 25), limit=20) in COMMON_SEARCHES
        assert len(COMMON_SEARCHES) == 7

    @pytest.mark.asyncio
    async def test_warmup_populates_common_searches(self, warm_cache, book):
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))

        report = await CacheWarmer(warm_cache).warmup_cache(search_fn)

        assert search_fn.call_count == len(COMMON_SEARCHES)
        assert report.succeeded == len(COMMON_SEARCHES)
        assert len(warm_cache) == len(COMMON_SEARCHES)

    @pytest.mark.asyncio
    async def test_warmup_uses_triple_ttl(self, warm_cache, clock, book):
        """Test warm-up entries live three times the default TTL."""
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))
        await CacheWarmer(warm_cache).warmup_cache(search_fn)

        clock.advance(29)
        assert warm_cache.get(COMMON_SEARCHES[0]) is not None
        clock.advance(1)
        assert warm_cache.get(COMMON_SEARCHES[0]) is None

    @pytest.mark.asyncio
    async def test_warmup_settles_all_failures(self, warm_cache):
        """Test a fully failing backend never raises to the caller."""
        search_fn = AsyncMock(side_effect=ConnectionError("unreachable"))

        report = await CacheWarmer(warm_cache).warmup_cache(search_fn)

        assert report.failed == len(COMMON_SEARCHES)
        assert report.succeeded == 0
        assert len(warm_cache) == 0

    @pytest.mark.asyncio
    async def test_warmup_skips_cached(self, warm_cache, book):
        warm_cache.set(COMMON_SEARCHES[0], [book], 1)
        search_fn = AsyncMock(return_value=SearchResponse(results=[book], total=1))

        report = await CacheWarmer(warm_cache).warmup_cache(search_fn)

        assert report.skipped == 1
        assert search_fn.call_count == len(COMMON_SEARCHES) - 1
