"""Structural identity for validation rules.

Key Responsibilities:
    - Compute the canonical ``"{type}|{field_path}|{scope}"`` identity key
    - Compare rules and instance scopes structurally
    - Group and deduplicate rules that perform the same check

Collaborators:
    - Upstream: Rule evaluation engines caching compiled rules, rule review
      tooling reporting duplicates
    - Downstream: :mod:`Medical_FHIR_rules.models.rules`

Side Effects:
    - None: All functions are pure

Thread Safety:
    - Thread-safe: No shared mutable state

Identity ignores ``id``, severity, error codes and hints because they change
how a rule reports, not what it checks.

Example:
    >>> from Medical_FHIR_rules.models import AllInstances
    >>> identity_key("Required", "name.family", AllInstances())
    'Required|name.family|all'
"""

# ==============================================================================
# IMPORTS
# ==============================================================================

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

from pydantic import ValidationError

from Medical_FHIR_rules.models.rules import (
    INSTANCE_SCOPE_ADAPTER,
    AllInstances,
    FilteredInstances,
    FirstInstance,
    RuleDefinition,
)

# ==============================================================================
# TYPE DEFINITIONS
# ==============================================================================

ScopeLike = AllInstances | FirstInstance | FilteredInstances | Mapping[str, object] | None

NO_SCOPE_TOKEN = "none"

# ==============================================================================
# SCOPE HELPERS
# ==============================================================================


def scope_token(scope: ScopeLike) -> str:
    """Return the identity token for an instance scope.

    Mapping-shaped scopes (decoded JSON) are validated into the scope union
    first; a mapping that is not a recognised scope falls back to its
    canonical JSON text so the function stays total.
    """
    match scope:
        case None:
            return NO_SCOPE_TOKEN
        case AllInstances() | FirstInstance() | FilteredInstances():
            return scope.stable_key()
        case Mapping():
            try:
                return INSTANCE_SCOPE_ADAPTER.validate_python(scope).stable_key()
            except ValidationError:
                return json.dumps(dict(scope), sort_keys=True, default=str)
    raise TypeError(f"Unsupported instance scope: {type(scope).__name__}")


def instance_scope_equals(first: ScopeLike, second: ScopeLike) -> bool:
    """Compare two scopes by variant and, for filters, exact condition text."""
    if first is None and second is None:
        return True
    if first is None or second is None:
        return False
    return scope_token(first) == scope_token(second)


# ==============================================================================
# IDENTITY KEYS
# ==============================================================================


def identity_key(rule_type: str | None, field_path: str | None, scope: ScopeLike) -> str:
    """Build the identity key from its three components."""
    return f"{rule_type or ''}|{field_path or ''}|{scope_token(scope)}"


def rule_identity_key(rule: RuleDefinition) -> str:
    """Build the identity key of a rule.

    Raises:
        TypeError: If ``rule`` is ``None``.
    """
    if rule is None:
        raise TypeError("rule is required to compute an identity key")
    return identity_key(rule.type, rule.field_path, rule.instance_scope)


def are_equal(first: RuleDefinition, second: RuleDefinition) -> bool:
    """Return whether two rules perform the same check.

    Raises:
        TypeError: If either rule is ``None``.
    """
    if first is None or second is None:
        raise TypeError("both rules are required for an identity comparison")
    return rule_identity_key(first) == rule_identity_key(second)


# ==============================================================================
# DUPLICATE DETECTION
# ==============================================================================


def find_duplicate_rules(rules: Iterable[RuleDefinition]) -> dict[str, list[RuleDefinition]]:
    """Group rules sharing an identity key, keeping only real duplicates."""
    groups: dict[str, list[RuleDefinition]] = {}
    for rule in rules:
        groups.setdefault(rule_identity_key(rule), []).append(rule)
    return {key: members for key, members in groups.items() if len(members) > 1}


def deduplicate_rules(rules: Iterable[RuleDefinition]) -> list[RuleDefinition]:
    """Keep the first rule for each identity key, preserving input order."""
    seen: set[str] = set()
    unique: list[RuleDefinition] = []
    for rule in rules:
        key = rule_identity_key(rule)
        if key in seen:
            continue
        seen.add(key)
        unique.append(rule)
    return unique


__all__ = [
    "NO_SCOPE_TOKEN",
    "ScopeLike",
    "are_equal",
    "deduplicate_rules",
    "find_duplicate_rules",
    "identity_key",
    "instance_scope_equals",
    "rule_identity_key",
    "scope_token",
]
