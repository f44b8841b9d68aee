"""Shared fixtures for search cache tests."""

import pytest

from search_cache import SearchCache


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    """Small cache matching the bookstore test setup: 1s TTL, 3 entries."""
    return SearchCache(default_ttl_seconds=1, max_cache_size=3, clock=clock)


@pytest.fixture
def book():
    return {
        "id": "1",
        "title": "Test Book",
        "author": "Test Author",
        "price": 10,
        "is_free": False,
        "category": "Fiction",
        "tags": ["test"],
        "search_rank": 0.8,
    }
