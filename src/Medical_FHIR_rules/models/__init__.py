"""Domain models for rules, field schemas and spec hints."""

from .rules import (
    INSTANCE_SCOPE_ADAPTER,
    AllInstances,
    FilteredInstances,
    FirstInstance,
    InstanceScope,
    RuleDefinition,
    RuleSet,
)
from .schema import UNBOUNDED_MAX, ElementDefinition, FieldSchemaNode
from .spec_hints import Severity, SpecHint, SpecHintCatalog, SpecHintIssue

__all__ = [
    "INSTANCE_SCOPE_ADAPTER",
    "UNBOUNDED_MAX",
    "AllInstances",
    "ElementDefinition",
    "FieldSchemaNode",
    "FilteredInstances",
    "FirstInstance",
    "InstanceScope",
    "RuleDefinition",
    "RuleSet",
    "Severity",
    "SpecHint",
    "SpecHintCatalog",
    "SpecHintIssue",
]
