"""Validation of book search parameters before they reach the cache or backend."""

from validation.search_validation import (
    ValidationError,
    ValidationResult,
    validate_search_request,
)

__all__ = ["ValidationError", "ValidationResult", "validate_search_request"]
