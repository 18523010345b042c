"""Parsed-bundle interfaces and a mapping-backed implementation.

Key Responsibilities:
    - Define the read-only surface the rule core needs from a parsed bundle:
      per entry, a resource type tag plus path-based presence queries
    - Provide :class:`FhirBundle` / :class:`FhirResource` over decoded FHIR
      JSON so callers holding plain dictionaries can use the core directly

Collaborators:
    - Upstream: Wire-format parsers produce the decoded JSON
    - Downstream: ``spec_hints.service`` and ``rules.selector`` consume the
      protocols

Side Effects:
    - None: wrappers never mutate the underlying mappings

Thread Safety:
    - Thread-safe for concurrent reads
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .paths import has_value_at, occurrences_at, values_at

# ==============================================================================
# PROTOCOLS
# ==============================================================================


@runtime_checkable
class ParsedResource(Protocol):
    """A single typed record within a bundle."""

    @property
    def resource_type(self) -> str: ...

    @property
    def resource_id(self) -> str | None: ...

    def has_value_at(self, path: str) -> bool:
        """Return whether a non-empty value exists at a dotted path."""

    def values_at(self, path: str) -> Sequence[Any]:
        """Return the non-empty values at a dotted path."""

    def occurrences_at(self, path: str) -> Sequence[Any]:
        """Return every occurrence at a dotted path, keeping array positions."""


class ParsedBundle(Protocol):
    """Ordered entries of a bundle; an entry may carry no resource."""

    @property
    def resources(self) -> Sequence[ParsedResource | None]: ...


# ==============================================================================
# MAPPING-BACKED IMPLEMENTATION
# ==============================================================================


@dataclass(frozen=True, slots=True)
class FhirResource:
    """Read-only view over a decoded FHIR resource."""

    data: Mapping[str, Any]

    @property
    def resource_type(self) -> str:
        return str(self.data.get("resourceType", ""))

    @property
    def resource_id(self) -> str | None:
        value = self.data.get("id")
        return str(value) if value is not None else None

    def has_value_at(self, path: str) -> bool:
        return has_value_at(self.data, path)

    def values_at(self, path: str) -> list[Any]:
        return values_at(self.data, path)

    def occurrences_at(self, path: str) -> list[Any]:
        return occurrences_at(self.data, path)


@dataclass(frozen=True, slots=True)
class FhirBundle:
    """Read-only view over a decoded FHIR ``Bundle``."""

    resources: tuple[FhirResource | None, ...] = field(default_factory=tuple)
    bundle_type: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FhirBundle:
        """Wrap a decoded bundle; entries without a resource are kept as ``None``."""
        resources: list[FhirResource | None] = []
        for entry in data.get("entry") or ():
            resource = entry.get("resource") if isinstance(entry, Mapping) else None
            resources.append(FhirResource(resource) if isinstance(resource, Mapping) else None)
        bundle_type = data.get("type")
        return cls(resources=tuple(resources), bundle_type=str(bundle_type) if bundle_type else None)

    @classmethod
    def of(cls, *resources: Mapping[str, Any]) -> FhirBundle:
        """Build a collection bundle from resource mappings."""
        return cls(resources=tuple(FhirResource(item) for item in resources), bundle_type="collection")

    def __len__(self) -> int:
        return len(self.resources)


__all__ = ["FhirBundle", "FhirResource", "ParsedBundle", "ParsedResource"]
