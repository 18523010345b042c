"""Observability helpers."""

from .metrics import record_schema_lookup, record_spec_hint_issue

__all__ = ["record_schema_lookup", "record_spec_hint_issue"]
