"""Type-definition sources consumed by the schema resolver.

Key Responsibilities:
    - Define the asynchronous lookup contract for element definitions
    - Provide a mapping-backed source loadable from YAML documents
    - Ship a curated FHIR R4 subset as package data

Collaborators:
    - Upstream: :class:`~Medical_FHIR_rules.schema.resolver.SchemaResolver`
    - Downstream: PyYAML for document parsing, ``importlib.resources`` for
      bundled data

Side Effects:
    - Reads YAML files from disk or package data when loading

Thread Safety:
    - Thread-safe: loaded definitions are immutable
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from importlib import resources
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog
import yaml

from Medical_FHIR_rules.models.schema import ElementDefinition

logger = structlog.get_logger(__name__)

DEFAULT_TYPES_PACKAGE = "Medical_FHIR_rules.schema.data"
DEFAULT_TYPES_RESOURCE = "fhir-r4-types.yaml"


@runtime_checkable
class TypeDefinitionSource(Protocol):
    """Asynchronous provider of per-type element definitions."""

    async def get_element_definitions(self, type_name: str) -> Sequence[ElementDefinition] | None:
        """Return the elements declared by ``type_name`` or ``None`` when unknown."""


def _element_from_mapping(type_name: str, data: Mapping[str, Any]) -> ElementDefinition:
    if not isinstance(data, Mapping):
        raise ValueError(f"{type_name}: element definitions must be mappings")
    try:
        return ElementDefinition(
            element_name=str(data["name"]),
            declared_type=str(data["type"]),
            min=int(data.get("min", 0)),
            max=data.get("max", "1"),
        )
    except KeyError as exc:
        raise ValueError(f"{type_name}: element definition is missing {exc.args[0]!r}") from exc


class InMemoryTypeDefinitionSource:
    """Serve element definitions from an in-memory mapping."""

    def __init__(
        self,
        definitions: Mapping[str, Iterable[ElementDefinition]],
        *,
        version: str | None = None,
    ) -> None:
        self._definitions: dict[str, tuple[ElementDefinition, ...]] = {
            name: tuple(elements) for name, elements in definitions.items()
        }
        self.version = version

    async def get_element_definitions(self, type_name: str) -> tuple[ElementDefinition, ...] | None:
        return self._definitions.get(type_name)

    @property
    def type_names(self) -> list[str]:
        return sorted(self._definitions)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._definitions

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> InMemoryTypeDefinitionSource:
        """Build a source from a ``{"version": ..., "types": {...}}`` document."""
        types = data.get("types") or {}
        if not isinstance(types, Mapping):
            raise ValueError("'types' must be a mapping of type name to element list")
        definitions: dict[str, list[ElementDefinition]] = {}
        for type_name, elements in types.items():
            if not isinstance(elements, list):
                raise ValueError(f"{type_name}: elements must be a list")
            definitions[str(type_name)] = [
                _element_from_mapping(str(type_name), element) for element in elements
            ]
        version = data.get("version")
        return cls(definitions, version=str(version) if version is not None else None)

    @classmethod
    def from_yaml_text(cls, content: str) -> InMemoryTypeDefinitionSource:
        raw = yaml.safe_load(content)
        return cls.from_mapping(raw or {})

    @classmethod
    def from_yaml(cls, path: Path) -> InMemoryTypeDefinitionSource:
        source = cls.from_yaml_text(path.read_text(encoding="utf-8"))
        logger.info("schema.types_loaded", path=str(path), types=len(source.type_names))
        return source

    @classmethod
    def default(cls) -> InMemoryTypeDefinitionSource:
        """Load the bundled curated FHIR R4 subset."""
        file_ref = resources.files(DEFAULT_TYPES_PACKAGE).joinpath(DEFAULT_TYPES_RESOURCE)
        return cls.from_yaml_text(file_ref.read_text(encoding="utf-8"))


__all__ = ["InMemoryTypeDefinitionSource", "TypeDefinitionSource"]
