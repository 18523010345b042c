"""Advisory spec-hint checks over parsed FHIR bundles.

Key Responsibilities:
    - Match each bundle entry against the catalog hints for its resource type
    - Evaluate conditional hints, per occurrence when a hint applies to each
      item of a repeating parent
    - Emit warning-severity :class:`SpecHintIssue` objects in bundle-entry
      order, then catalog order

Collaborators:
    - Upstream: Validation pipelines holding a parsed bundle
    - Downstream: :class:`SpecHintCatalogRegistry`, optional
      :class:`SchemaResolver`, ``rules.predicates`` for conditions

Side Effects:
    - Emits structured logs and Prometheus issue counters
    - Binds a correlation identifier for the duration of each check

Thread Safety:
    - Safe for concurrent ``check`` calls: the service holds only read-only
      collaborators and per-call state
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from Medical_FHIR_rules.bundle.model import ParsedBundle, ParsedResource
from Medical_FHIR_rules.bundle.paths import has_value_at
from Medical_FHIR_rules.config.settings import AppSettings
from Medical_FHIR_rules.models.spec_hints import SpecHint, SpecHintCatalog, SpecHintIssue
from Medical_FHIR_rules.observability.metrics import record_spec_hint_issue
from Medical_FHIR_rules.rules.predicates import evaluate_predicate, parse_predicate
from Medical_FHIR_rules.schema.resolver import SchemaResolver
from Medical_FHIR_rules.utils.logging import correlation_scope

from .catalog import SpecHintCatalogRegistry

logger = structlog.get_logger(__name__)


def _entry_pointer(entry_index: int) -> str:
    return f"/entry/{entry_index}/resource"


class SpecHintService:
    """Check bundles against the spec-hint catalog for a FHIR version."""

    def __init__(
        self,
        registry: SpecHintCatalogRegistry | None = None,
        *,
        resolver: SchemaResolver | None = None,
        enabled: bool = True,
    ) -> None:
        self._registry = registry or SpecHintCatalogRegistry.default()
        self._resolver = resolver
        self._enabled = enabled

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        resolver: SchemaResolver | None = None,
    ) -> SpecHintService:
        settings = settings or AppSettings()
        return cls(
            SpecHintCatalogRegistry.from_settings(settings.spec_hints),
            resolver=resolver,
            enabled=settings.spec_hints.enabled,
        )

    @property
    def registry(self) -> SpecHintCatalogRegistry:
        return self._registry

    def is_supported(self, spec_version: str | None) -> bool:
        return self._registry.is_supported(spec_version)

    async def check(
        self,
        bundle: ParsedBundle | None,
        spec_version: str | None,
        *,
        correlation_id: str | None = None,
    ) -> list[SpecHintIssue]:
        """Return advisory issues for fields the FHIR version expects but the bundle lacks.

        Unsupported versions and empty bundles yield an empty list. Every log
        event emitted during the run carries ``correlation_id``; when none is
        given, the caller's bound identifier is reused or a new one generated.
        """
        if not self._enabled or bundle is None:
            return []
        with correlation_scope(correlation_id):
            catalog = self._registry.get(spec_version)
            if catalog is None:
                logger.debug("spec_hints.unsupported_version", spec_version=spec_version)
                return []

            version_label = (spec_version or "").strip()
            issues: list[SpecHintIssue] = []
            for entry_index, resource in enumerate(bundle.resources):
                if resource is None:
                    continue
                hints = await self._applicable_hints(catalog, resource.resource_type)
                for hint in hints:
                    issues.extend(self._check_hint(hint, resource, entry_index, version_label))

            for issue in issues:
                record_spec_hint_issue(catalog.version, issue.resource_type)
            logger.info(
                "spec_hints.checked",
                fhir_version=catalog.version,
                entries=len(bundle.resources),
                issues=len(issues),
            )
            return issues

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _applicable_hints(
        self, catalog: SpecHintCatalog, resource_type: str
    ) -> Sequence[SpecHint]:
        hints = catalog.hints_for(resource_type)
        if not hints or self._resolver is None:
            return hints
        root = await self._resolver.resolve_schema(resource_type)
        if root is None:
            return hints
        applicable: list[SpecHint] = []
        for hint in hints:
            if root.find(hint.path) is None:
                logger.debug(
                    "spec_hints.unresolvable_path",
                    resource_type=resource_type,
                    path=hint.path,
                )
                continue
            applicable.append(hint)
        return applicable

    def _check_hint(
        self,
        hint: SpecHint,
        resource: ParsedResource,
        entry_index: int,
        version: str,
    ) -> list[SpecHintIssue]:
        if not hint.is_conditional:
            if resource.has_value_at(hint.path):
                return []
            return [self._issue(hint, resource, entry_index, version)]

        predicate = parse_predicate(hint.condition or "")
        if predicate is None:
            logger.debug(
                "spec_hints.unparseable_condition",
                resource_type=resource.resource_type,
                condition=hint.condition,
            )
            return []
        if not evaluate_predicate(predicate, resource):
            return []

        parent, _, child = hint.path.partition(".")
        if not (hint.applies_to_each and child):
            if resource.has_value_at(hint.path):
                return []
            return [self._issue(hint, resource, entry_index, version)]

        issues: list[SpecHintIssue] = []
        for position, occurrence in enumerate(resource.occurrences_at(parent)):
            if has_value_at(occurrence, child):
                continue
            issues.append(
                self._issue(
                    hint,
                    resource,
                    entry_index,
                    version,
                    path=f"{resource.resource_type}.{parent}[{position}].{child}",
                    json_pointer=f"{_entry_pointer(entry_index)}/{parent}/{position}",
                )
            )
        return issues

    def _issue(
        self,
        hint: SpecHint,
        resource: ParsedResource,
        entry_index: int,
        version: str,
        *,
        path: str | None = None,
        json_pointer: str | None = None,
    ) -> SpecHintIssue:
        resource_type = resource.resource_type
        return SpecHintIssue(
            resource_type=resource_type,
            resource_id=resource.resource_id,
            path=path or f"{resource_type}.{hint.path}",
            reason=hint.render_reason(version=version, resource_type=resource_type),
            json_pointer=json_pointer or _entry_pointer(entry_index),
            entry_index=entry_index,
            is_conditional=hint.is_conditional,
            condition=hint.condition,
            applies_to_each=hint.applies_to_each,
            source=hint.source,
        )


__all__ = ["SpecHintService"]
