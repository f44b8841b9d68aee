"""Tests for search request validation."""

import pytest

from search_cache import SearchRequest
from validation import validate_search_request


def error_fields(request):
    return [error.field for error in validate_search_request(request).errors]


class TestValidateSearchRequest:
    """Test cases for validate_search_request."""

    def test_empty_request_is_valid(self):
        result = validate_search_request(SearchRequest())
        assert result.is_valid is True
        assert result.errors == []

    def test_typical_request_is_valid(self):
        request = SearchRequest(
            query="dune",
            category="Science Fiction",
            tags=["classic"],
            price_range=(0, 25),
            limit=20,
            offset=0,
        )
        assert validate_search_request(request).is_valid

    def test_query_too_long(self):
        assert error_fields(SearchRequest(query="x" * 101)) == ["query"]
        assert error_fields(SearchRequest(query="x" * 100)) == []

    def test_category_too_long(self):
        assert error_fields(SearchRequest(category="c" * 101)) == ["category"]

    def test_too_many_tags(self):
        assert error_fields(SearchRequest(tags=[f"t{i}" for i in range(11)])) == ["tags"]

    def test_tag_too_long_reported_once(self):
        assert error_fields(SearchRequest(tags=["a" * 51, "b" * 51])) == ["tags"]

    @pytest.mark.parametrize("price_range,message", [
        ((-1, 10), "Minimum price cannot be negative"),
        ((20, 10), "Minimum price cannot be greater than maximum price"),
        ((0, 1000), "Maximum price cannot exceed $999.99"),
    ])
    def test_price_range_rules(self, price_range, message):
        result = validate_search_request(SearchRequest(price_range=price_range))
        assert not result.is_valid
        assert message in [error.message for error in result.errors]

    def test_negative_max_price(self):
        result = validate_search_request(SearchRequest(price_range=(-5, -1)))
        messages = [error.message for error in result.errors]
        assert "Minimum price cannot be negative" in messages
        assert "Maximum price cannot be negative" in messages

    @pytest.mark.parametrize("limit,valid", [(0, False), (1, True), (100, True), (101, False)])
    def test_limit_bounds(self, limit, valid):
        assert validate_search_request(SearchRequest(limit=limit)).is_valid is valid

    def test_negative_offset(self):
        assert error_fields(SearchRequest(offset=-1)) == ["offset"]

    def test_collects_every_error(self):
        request = SearchRequest(query="q" * 200, limit=0, offset=-3)
        assert error_fields(request) == ["query", "limit", "offset"]
