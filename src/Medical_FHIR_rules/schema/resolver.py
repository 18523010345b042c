"""Resolve FHIR type names into immutable field-schema trees.

Key Responsibilities:
    - Expand a type's element definitions into a :class:`FieldSchemaNode` tree
    - Stop descent when a type re-enters its own ancestor chain or the depth
      guard is reached, marking the node as truncated
    - Cache resolved roots per type name for the resolver's lifetime

Collaborators:
    - Upstream: ``spec_hints.service`` and ``spec_hints.generator``
    - Downstream: :class:`~Medical_FHIR_rules.schema.sources.TypeDefinitionSource`

Side Effects:
    - Populates in-memory caches
    - Emits structured logs and Prometheus lookup counters

Thread Safety:
    - Safe for concurrent use on one event loop: cache population is guarded
      by a lock per type name, reads are lock-free

Performance Characteristics:
    - Each root is expanded once; element definitions are memoised per type
      so shared datatypes are fetched from the source only once
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

import structlog

from Medical_FHIR_rules.config.settings import DEFAULT_PRIMITIVE_TYPES, SchemaSettings
from Medical_FHIR_rules.models.schema import ElementDefinition, FieldSchemaNode
from Medical_FHIR_rules.observability.metrics import record_schema_lookup

from .sources import InMemoryTypeDefinitionSource, TypeDefinitionSource

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 8


class SchemaResolver:
    """Build and cache field-schema trees from a type-definition source."""

    def __init__(
        self,
        source: TypeDefinitionSource,
        *,
        primitive_types: Iterable[str] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._source = source
        self._primitive_types = frozenset(
            primitive_types if primitive_types is not None else DEFAULT_PRIMITIVE_TYPES
        )
        self._max_depth = max_depth
        self._roots: dict[str, FieldSchemaNode] = {}
        self._definitions: dict[str, tuple[ElementDefinition, ...]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: SchemaSettings | None = None,
        *,
        source: TypeDefinitionSource | None = None,
    ) -> SchemaResolver:
        settings = settings or SchemaSettings()
        if source is None:
            path = settings.type_definitions_path
            source = (
                InMemoryTypeDefinitionSource.from_yaml(path)
                if path is not None
                else InMemoryTypeDefinitionSource.default()
            )
        return cls(
            source,
            primitive_types=settings.primitive_types,
            max_depth=settings.max_depth,
        )

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def cached_types(self) -> list[str]:
        return sorted(self._roots)

    def is_primitive(self, type_name: str) -> bool:
        # FHIR primitives are lower-case; complex and backbone types are not.
        return type_name in self._primitive_types or not type_name[:1].isupper()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def resolve_schema(self, type_name: str) -> FieldSchemaNode | None:
        """Return the field tree for ``type_name`` or ``None`` when unknown."""
        cached = self._roots.get(type_name)
        if cached is not None:
            record_schema_lookup("hit")
            return cached

        lock = self._locks.setdefault(type_name, asyncio.Lock())
        async with lock:
            cached = self._roots.get(type_name)
            if cached is not None:
                record_schema_lookup("hit")
                return cached
            root = await self._build_root(type_name)
            if root is None:
                if self._locks.get(type_name) is lock:
                    del self._locks[type_name]
                record_schema_lookup("unknown")
                logger.warning("schema.unknown_type", type_name=type_name)
                return None
            record_schema_lookup("miss")
            self._roots[type_name] = root
            logger.debug(
                "schema.resolved",
                type_name=type_name,
                nodes=sum(1 for _ in root.walk()),
            )
            return root

    async def resolve_many(self, type_names: Sequence[str]) -> dict[str, FieldSchemaNode | None]:
        """Resolve several types concurrently, keyed by the requested names."""
        results = await asyncio.gather(*(self.resolve_schema(name) for name in type_names))
        return dict(zip(type_names, results, strict=True))

    def invalidate(self, type_name: str | None = None) -> None:
        """Drop cached results for one type, or for every type when ``None``."""
        if type_name is None:
            self._roots.clear()
            self._definitions.clear()
            self._locks.clear()
        else:
            self._roots.pop(type_name, None)
            self._definitions.pop(type_name, None)
            self._locks.pop(type_name, None)
        logger.debug("schema.invalidated", type_name=type_name or "*")

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------
    async def _elements_for(self, type_name: str) -> tuple[ElementDefinition, ...] | None:
        memoised = self._definitions.get(type_name)
        if memoised is not None:
            return memoised
        elements = await self._source.get_element_definitions(type_name)
        if elements is None:
            return None
        result = tuple(elements)
        self._definitions[type_name] = result
        return result

    async def _build_root(self, type_name: str) -> FieldSchemaNode | None:
        elements = await self._elements_for(type_name)
        if elements is None:
            return None
        children = await self._build_children(type_name, elements, ancestors=(type_name,), depth=1)
        return FieldSchemaNode(
            element_name=type_name,
            path=type_name,
            type=type_name,
            min=1,
            max="1",
            children=children,
        )

    async def _build_children(
        self,
        parent_path: str,
        elements: Sequence[ElementDefinition],
        *,
        ancestors: tuple[str, ...],
        depth: int,
    ) -> tuple[FieldSchemaNode, ...]:
        nodes: list[FieldSchemaNode] = []
        for element in elements:
            path = f"{parent_path}.{element.element_name}"
            declared = element.declared_type
            children: tuple[FieldSchemaNode, ...] = ()
            truncated = False
            if not self.is_primitive(declared):
                if declared in ancestors:
                    truncated = True
                    logger.debug("schema.cycle_truncated", path=path, type_name=declared)
                else:
                    nested = await self._elements_for(declared)
                    if nested is not None:
                        if depth >= self._max_depth:
                            truncated = True
                            logger.debug("schema.depth_truncated", path=path, depth=depth)
                        else:
                            children = await self._build_children(
                                path,
                                nested,
                                ancestors=(*ancestors, declared),
                                depth=depth + 1,
                            )
            nodes.append(
                FieldSchemaNode(
                    element_name=element.element_name,
                    path=path,
                    type=declared,
                    min=element.min,
                    max=element.max,
                    children=children,
                    truncated=truncated,
                )
            )
        return tuple(nodes)


__all__ = ["DEFAULT_MAX_DEPTH", "SchemaResolver"]
