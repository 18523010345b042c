"""Instance-scope selection over bundle entries and field occurrences.

Key Responsibilities:
    - Select the bundle resources of one type that a rule applies to
    - Select the occurrences of a repeating field a rule applies to
    - Dispatch exhaustively over the three :data:`InstanceScope` variants

Collaborators:
    - Upstream: Rule evaluation engines
    - Downstream: ``rules.predicates`` for filter conditions, ``bundle`` for
      resource access

Side Effects:
    - None

Thread Safety:
    - Thread-safe: Selector instances hold no mutable state

A ``None`` scope means no scope was authored and selects every candidate,
matching :class:`AllInstances`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import structlog

from Medical_FHIR_rules.bundle.model import ParsedBundle, ParsedResource
from Medical_FHIR_rules.models.rules import AllInstances, FilteredInstances, FirstInstance
from Medical_FHIR_rules.rules.predicates import evaluate_predicate, parse_predicate
from Medical_FHIR_rules.utils.errors import InvalidInstanceScopeError

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")

Scope = AllInstances | FirstInstance | FilteredInstances | None


def _node_of(candidate: Any) -> Mapping[str, Any] | ParsedResource:
    # Primitive occurrences have no fields to test.
    if isinstance(candidate, (Mapping, ParsedResource)):
        return candidate
    return {}


def select_indices(candidates: Sequence[_T], scope: Scope) -> list[int]:
    """Return the positions in ``candidates`` selected by ``scope``.

    Raises:
        InvalidInstanceScopeError: If a filter condition is blank, references
            bundle structure or cannot be parsed.
    """
    match scope:
        case None | AllInstances():
            return list(range(len(candidates)))
        case FirstInstance():
            return [0] if candidates else []
        case FilteredInstances(condition=condition):
            scope.check()
            predicate = parse_predicate(condition)
            if predicate is None:
                raise InvalidInstanceScopeError(
                    f"Unsupported filter condition: {condition}", condition=condition
                )
            return [
                index
                for index, candidate in enumerate(candidates)
                if evaluate_predicate(predicate, _node_of(candidate))
            ]
    raise TypeError(f"Unknown instance scope: {type(scope).__name__}")


def select_occurrences(occurrences: Sequence[_T], scope: Scope) -> list[_T]:
    """Return the field occurrences selected by ``scope``, in order."""
    return [occurrences[index] for index in select_indices(occurrences, scope)]


class ResourceSelector:
    """Select bundle resources of one type according to an instance scope."""

    def select(
        self,
        bundle: ParsedBundle,
        resource_type: str,
        scope: Scope,
    ) -> list[tuple[int, ParsedResource]]:
        """Return ``(entry_index, resource)`` pairs selected by ``scope``."""
        candidates = [
            (index, resource)
            for index, resource in enumerate(bundle.resources)
            if resource is not None and resource.resource_type == resource_type
        ]
        if not candidates:
            logger.debug(
                "selector.no_candidates",
                resource_type=resource_type,
            )
            return []
        selected = select_indices([resource for _, resource in candidates], scope)
        logger.debug(
            "selector.selected",
            resource_type=resource_type,
            candidates=len(candidates),
            selected=len(selected),
        )
        return [candidates[index] for index in selected]


__all__ = ["ResourceSelector", "Scope", "select_indices", "select_occurrences"]
