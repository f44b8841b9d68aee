"""Search request validation.

Rejects requests the backend would refuse or that could be abused to
pull oversized pages.
"""

from dataclasses import dataclass, field
from typing import List

from search_cache.keys import SearchRequest

MAX_QUERY_LENGTH = 100
MAX_CATEGORY_LENGTH = 100
MAX_TAGS = 10
MAX_TAG_LENGTH = 50
MAX_PRICE = 999.99
MAX_LIMIT = 100


@dataclass
class ValidationError:
    """A single invalid field and the reason it was rejected."""
    field: str
    message: str


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)


def validate_search_request(request: SearchRequest) -> ValidationResult:
    """Validate search filters and pagination.

    Args:
        request: Search request to check

    Returns:
        ValidationResult listing every rule the request breaks
    """
    errors: List[ValidationError] = []

    if request.query is not None and len(request.query) > MAX_QUERY_LENGTH:
        errors.append(ValidationError("query", f"Search query must be less than {MAX_QUERY_LENGTH} characters"))

    if request.category is not None and len(request.category) > MAX_CATEGORY_LENGTH:
        errors.append(ValidationError("category", f"Category must be less than {MAX_CATEGORY_LENGTH} characters"))

    if request.tags is not None:
        if len(request.tags) > MAX_TAGS:
            errors.append(ValidationError("tags", f"Cannot filter by more than {MAX_TAGS} tags"))

        if any(len(tag) > MAX_TAG_LENGTH for tag in request.tags):
            errors.append(ValidationError("tags", f"Each tag must be less than {MAX_TAG_LENGTH} characters"))

    if request.price_range is not None:
        min_price, max_price = request.price_range

        if min_price < 0:
            errors.append(ValidationError("price_range", "Minimum price cannot be negative"))
        if max_price < 0:
            errors.append(ValidationError("price_range", "Maximum price cannot be negative"))
        if min_price > max_price:
            errors.append(ValidationError("price_range", "Minimum price cannot be greater than maximum price"))
        if max_price > MAX_PRICE:
            errors.append(ValidationError("price_range", f"Maximum price cannot exceed ${MAX_PRICE}"))

    if request.limit is not None:
        if request.limit < 1:
            errors.append(ValidationError("limit", "Limit must be at least 1"))
        elif request.limit > MAX_LIMIT:
            errors.append(ValidationError("limit", f"Limit cannot exceed {MAX_LIMIT}"))

    if request.offset is not None and request.offset < 0:
        errors.append(ValidationError("offset", "Offset cannot be negative"))

    return ValidationResult(is_valid=not errors, errors=errors)
