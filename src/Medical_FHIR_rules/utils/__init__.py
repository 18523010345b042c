"""Shared utilities for the rule core."""

from .errors import CatalogLoadError, FoundationError, InvalidInstanceScopeError, ProblemDetail

__all__ = [
    "CatalogLoadError",
    "FoundationError",
    "InvalidInstanceScopeError",
    "ProblemDetail",
]
