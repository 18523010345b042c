"""FHIR rule identity, schema resolution and advisory spec hints.

Key Responsibilities:
    - Compute canonical identity keys for authored validation rules
    - Resolve FHIR type names into cycle-safe field-schema trees
    - Check parsed bundles against version-specific spec-hint catalogs

Collaborators:
    - Upstream: Validation pipelines and rule-authoring tools
    - Downstream: ``rules``, ``schema`` and ``spec_hints`` subpackages

Side Effects:
    - None at import time

Example:
    >>> from Medical_FHIR_rules import identity_key
    >>> identity_key("Required", "name.family", None)
    'Required|name.family|none'
"""

from .bundle import FhirBundle, FhirResource
from .models import (
    AllInstances,
    FieldSchemaNode,
    FilteredInstances,
    FirstInstance,
    RuleDefinition,
    RuleSet,
    Severity,
    SpecHintIssue,
)
from .rules import (
    ResourceSelector,
    are_equal,
    deduplicate_rules,
    find_duplicate_rules,
    identity_key,
    instance_scope_equals,
    rule_identity_key,
)
from .schema import InMemoryTypeDefinitionSource, SchemaResolver
from .spec_hints import SpecHintCatalogRegistry, SpecHintGenerator, SpecHintService

__all__ = [
    "AllInstances",
    "FhirBundle",
    "FhirResource",
    "FieldSchemaNode",
    "FilteredInstances",
    "FirstInstance",
    "InMemoryTypeDefinitionSource",
    "ResourceSelector",
    "RuleDefinition",
    "RuleSet",
    "SchemaResolver",
    "Severity",
    "SpecHintCatalogRegistry",
    "SpecHintGenerator",
    "SpecHintIssue",
    "SpecHintService",
    "are_equal",
    "deduplicate_rules",
    "find_duplicate_rules",
    "identity_key",
    "instance_scope_equals",
    "rule_identity_key",
]
