"""Parsed-bundle access for the rule core."""

from .model import FhirBundle, FhirResource, ParsedBundle, ParsedResource
from .paths import has_value_at, is_empty_value, iter_path_values, occurrences_at, values_at

__all__ = [
    "FhirBundle",
    "FhirResource",
    "ParsedBundle",
    "ParsedResource",
    "has_value_at",
    "is_empty_value",
    "iter_path_values",
    "occurrences_at",
    "values_at",
]
