"""Utility helpers shared by the search cache and service layers."""

from .format_utils import format_size

__all__ = ["format_size"]
