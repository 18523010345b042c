"""Rule identity, predicate and scope-selection primitives."""

from .identity import (
    are_equal,
    deduplicate_rules,
    find_duplicate_rules,
    identity_key,
    instance_scope_equals,
    rule_identity_key,
    scope_token,
)
from .predicates import evaluate_predicate, matches, parse_predicate
from .selector import ResourceSelector, select_indices, select_occurrences

__all__ = [
    "ResourceSelector",
    "are_equal",
    "deduplicate_rules",
    "evaluate_predicate",
    "find_duplicate_rules",
    "identity_key",
    "instance_scope_equals",
    "matches",
    "parse_predicate",
    "rule_identity_key",
    "scope_token",
    "select_indices",
    "select_occurrences",
]
