"""Prometheus metrics for schema resolution and spec-hint checks.

Key Responsibilities:
    - Count schema cache lookups by outcome
    - Count advisory spec-hint issues by FHIR version and resource type

Collaborators:
    - Upstream: ``schema.resolver`` and ``spec_hints.service``
    - Downstream: Prometheus scrape endpoint owned by the embedding application

Thread Safety:
    - Thread-safe: All metric operations use atomic Prometheus operations
"""

# ==============================================================================
# IMPORTS
# ==============================================================================

from __future__ import annotations

from prometheus_client import Counter

# ==============================================================================
# METRIC DEFINITIONS
# ==============================================================================

SCHEMA_CACHE_LOOKUPS = Counter(
    "fhir_schema_cache_lookups_total",
    "Schema resolver lookups grouped by outcome",
    ["outcome"],
)

SPEC_HINT_ISSUES = Counter(
    "fhir_spec_hint_issues_total",
    "Advisory spec-hint issues emitted",
    ["fhir_version", "resource_type"],
)

# ==============================================================================
# RECORDING HELPERS
# ==============================================================================


def record_schema_lookup(outcome: str) -> None:
    """Record a schema lookup (``hit``, ``miss`` or ``unknown``)."""
    SCHEMA_CACHE_LOOKUPS.labels(outcome=outcome).inc()


def record_spec_hint_issue(fhir_version: str, resource_type: str) -> None:
    """Record a single emitted spec-hint issue."""
    SPEC_HINT_ISSUES.labels(fhir_version=fhir_version, resource_type=resource_type).inc()


__all__ = [
    "SCHEMA_CACHE_LOOKUPS",
    "SPEC_HINT_ISSUES",
    "record_schema_lookup",
    "record_spec_hint_issue",
]
