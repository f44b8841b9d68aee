"""Search request model and cache key derivation.

Two requests that describe the same search (same query, filters, pagination
and sort) always map to the same key; tag order is not significant.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

KEY_DELIMITER = "|"


@dataclass(frozen=True)
class SearchRequest:
    """Filters, pagination and sort order describing one book search.

    Attributes:
        query: Free-text query (may be empty)
        category: Category filter
        tags: Tag filter, order insignificant
        price_range: Inclusive (min, max) price filter
        is_free: Restrict to free (True) or paid (False) books
        limit: Page size
        offset: Page offset
        sort_by: Sort field (e.g. "created_at", "title", "price")
        sort_order: "asc" or "desc"
    """
    query: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[Sequence[str]] = None
    price_range: Optional[Tuple[float, float]] = None
    is_free: Optional[bool] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    def __post_init__(self):
        # Lists and sets would make the frozen request unhashable
        if isinstance(self.tags, (list, set)):
            object.__setattr__(self, "tags", tuple(self.tags))


@dataclass
class SearchResponse:
    """A page of search results plus the total number of matches."""
    results: List[Any] = field(default_factory=list)
    total: int = 0


def _render_number(value: Any) -> str:
    # 10.0 and 10 describe the same price bound
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render_optional(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_tags(tags: Any) -> str:
    if not tags:
        return ""
    if isinstance(tags, (str, bytes)) or not isinstance(tags, Iterable):
        return str(tags)
    return ",".join(sorted(str(tag) for tag in tags))


def _render_price_range(price_range: Any) -> str:
    # Malformed ranges still render; they just never match a well-formed key
    if price_range is None:
        return ""
    if isinstance(price_range, (list, tuple)):
        return "-".join(_render_number(value) for value in price_range)
    return str(price_range)


def make_cache_key(request: SearchRequest) -> str:
    """Derive the cache key for a search request.

    Components are joined with ``|`` in a fixed order: query, category,
    sorted tags, price range, free flag, limit, offset, sort field and
    sort direction. Absent fields render as empty strings.

    A field value that itself contains ``|`` can in theory collide with a
    different request. That is a known limitation.

    Args:
        request: Search request to encode

    Returns:
        Deterministic string key
    """
    key_parts = [
        _render_optional(request.query),
        _render_optional(request.category),
        _render_tags(request.tags),
        _render_price_range(request.price_range),
        _render_optional(request.is_free),
        _render_optional(request.limit),
        _render_optional(request.offset),
        _render_optional(request.sort_by),
        _render_optional(request.sort_order),
    ]
    return KEY_DELIMITER.join(key_parts)
