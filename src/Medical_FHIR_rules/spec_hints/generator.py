"""Derive spec-hint catalogs from resolved field schemas.

A required child of the resource root becomes a simple hint. A required child
of an optional parent becomes a conditional hint on ``{parent}.exists()``
that applies to each parent occurrence when the parent repeats. ``id``,
``extension`` and ``modifierExtension`` subtrees never produce hints.

By default only the resource's own backbone elements are descended into,
mirroring the element list of a resource StructureDefinition snapshot;
``include_datatypes=True`` also walks into complex datatypes.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from Medical_FHIR_rules.models.schema import FieldSchemaNode
from Medical_FHIR_rules.models.spec_hints import SpecHint, SpecHintCatalog
from Medical_FHIR_rules.schema.resolver import SchemaResolver

logger = structlog.get_logger(__name__)

SKIPPED_ELEMENTS = frozenset({"id", "extension", "modifierExtension"})

_SIMPLE_REASON = (
    "According to HL7 FHIR {{version}}, '{{resource_type}}.{{path}}' is required "
    "(min cardinality = {minimum})."
)
_CONDITIONAL_REASON = (
    "According to HL7 FHIR {{version}}, '{{resource_type}}.{{path}}' is required "
    "when {{resource_type}}.{parent} is present."
)


class SpecHintGenerator:
    """Build :class:`SpecHintCatalog` objects from a :class:`SchemaResolver`."""

    def __init__(self, resolver: SchemaResolver, *, include_datatypes: bool = False) -> None:
        self._resolver = resolver
        self._include_datatypes = include_datatypes

    async def generate(
        self,
        resource_types: Iterable[str],
        version: str,
        *,
        aliases: Iterable[str] = (),
    ) -> SpecHintCatalog:
        hints: dict[str, tuple[SpecHint, ...]] = {}
        for resource_type in resource_types:
            root = await self._resolver.resolve_schema(resource_type)
            if root is None:
                logger.warning("spec_hints.generator.unknown_type", resource_type=resource_type)
                continue
            extracted = self.hints_for_schema(root)
            if extracted:
                hints[resource_type] = tuple(extracted)
            logger.debug(
                "spec_hints.generator.extracted",
                resource_type=resource_type,
                hints=len(extracted),
            )
        return SpecHintCatalog(version=version, aliases=tuple(aliases), hints=hints)

    def hints_for_schema(self, root: FieldSchemaNode) -> list[SpecHint]:
        """Return the hints for one resolved resource schema in declaration order."""
        hints: list[SpecHint] = []
        for child in root.children:
            self._collect(root, child, parent=None, hints=hints)
        return hints

    def _relative(self, root: FieldSchemaNode, node: FieldSchemaNode) -> str:
        return node.path[len(root.path) + 1 :]

    def _descends_into(self, root: FieldSchemaNode, node: FieldSchemaNode) -> bool:
        if self._include_datatypes:
            return True
        return node.type.startswith(f"{root.type}.")

    def _collect(
        self,
        root: FieldSchemaNode,
        node: FieldSchemaNode,
        *,
        parent: FieldSchemaNode | None,
        hints: list[SpecHint],
    ) -> None:
        if node.element_name in SKIPPED_ELEMENTS:
            return
        path = self._relative(root, node)
        if node.is_required:
            if parent is not None and not parent.is_required:
                parent_path = self._relative(root, parent)
                hints.append(
                    SpecHint(
                        path=path,
                        reason=_CONDITIONAL_REASON.format(parent=parent_path),
                        is_conditional=True,
                        condition=f"{parent_path}.exists()",
                        applies_to_each=parent.is_array,
                    )
                )
            else:
                hints.append(
                    SpecHint(path=path, reason=_SIMPLE_REASON.format(minimum=node.min))
                )
        if self._descends_into(root, node):
            for child in node.children:
                self._collect(root, child, parent=node, hints=hints)


def catalog_document(catalog: SpecHintCatalog) -> dict[str, Any]:
    """Render a catalog as a JSON-ready document in the on-disk catalog format."""
    return catalog.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["SKIPPED_ELEMENTS", "SpecHintGenerator", "catalog_document"]
