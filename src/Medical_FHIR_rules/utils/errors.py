"""Problem detail helpers and domain exceptions for the rule core.

Key Responsibilities:
    - Provide RFC 7807 compliant data structures used when rule-core failures
      need to be surfaced to an outer API layer
    - Supply a base exception that carries problem details, plus the small
      set of domain errors raised by catalog loading and scope selection

Collaborators:
    - Upstream: ``spec_hints.catalog`` raises :class:`CatalogLoadError`;
      ``rules.selector`` raises :class:`InvalidInstanceScopeError`
    - Downstream: Callers serialise :class:`ProblemDetail` instances

Side Effects:
    - None; helpers are pure data containers

Thread Safety:
    - Thread-safe; dataclasses are immutable aside from standard attribute
      mutation semantics

Performance Characteristics:
    - O(1) operations that only touch small dictionaries
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

# ==============================================================================
# TYPE DEFINITIONS
# ==============================================================================

__all__ = [
    "CatalogLoadError",
    "FoundationError",
    "InvalidInstanceScopeError",
    "ProblemDetail",
]


@dataclass(slots=True)
class ProblemDetail:
    """Lightweight problem details object compliant with RFC 7807."""

    title: str
    status: int
    detail: str | None = None
    type: str = "about:blank"
    instance: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def model_dump(self) -> dict[str, Any]:
        """Return a dictionary representation with optional fields dropped."""
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        if not payload.get("extra"):
            payload.pop("extra", None)
        return payload


class FoundationError(RuntimeError):
    """Base exception that carries a :class:`ProblemDetail` instance."""

    def __init__(
        self,
        message: str,
        *,
        status: int = 500,
        detail: str | None = None,
        type: str = "about:blank",
        instance: str | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialise the exception with structured problem detail attributes.

        Args:
            message: Human readable error summary.
            status: HTTP status code associated with the problem.
            detail: Optional detailed description of the failure.
            type: Problem type URI, defaults to ``about:blank``.
            instance: Optional URI reference identifying the specific occurrence.
            extra: Additional attributes included in the serialized payload.
        """
        super().__init__(message)
        self.problem = ProblemDetail(
            title=message,
            status=status,
            detail=detail,
            type=type,
            instance=instance,
            extra=extra or {},
        )


# ==============================================================================
# DOMAIN ERRORS
# ==============================================================================


class CatalogLoadError(FoundationError):
    """Raised when a spec-hint catalog file cannot be parsed or validated."""

    def __init__(self, source: str, errors: list[str]) -> None:
        super().__init__(
            f"Invalid spec-hint catalog: {source}",
            status=500,
            detail="; ".join(errors),
            extra={"source": source},
        )
        self.source = source
        self.errors = list(errors)


class InvalidInstanceScopeError(FoundationError, ValueError):
    """Raised when an instance scope cannot be applied to bundle contents."""

    def __init__(self, message: str, *, condition: str | None = None) -> None:
        super().__init__(
            message,
            status=422,
            extra={"condition": condition} if condition is not None else None,
        )
        self.condition = condition
