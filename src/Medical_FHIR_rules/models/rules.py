"""Rule definition and instance-scope models.

``InstanceScope`` is a closed family of three variants discriminated by
``kind``. Rule ``type`` stays an open string so new check kinds can be added
without touching identity or selection logic.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from Medical_FHIR_rules.utils.errors import InvalidInstanceScopeError

# Filter conditions are evaluated relative to a single resource.
_BUNDLE_REFERENCES = ("Bundle.", "entry.")


class RuleBaseModel(BaseModel):
    """Base configuration shared across rule models."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


# ==============================================================================
# INSTANCE SCOPES
# ==============================================================================


class AllInstances(RuleBaseModel):
    """Apply a rule to every occurrence."""

    kind: Literal["all"] = "all"

    def stable_key(self) -> str:
        return "all"

    def check(self) -> None:
        """Always applicable."""


class FirstInstance(RuleBaseModel):
    """Apply a rule to the first occurrence only."""

    kind: Literal["first"] = "first"

    def stable_key(self) -> str:
        return "first"

    def check(self) -> None:
        """Always applicable."""


class FilteredInstances(RuleBaseModel):
    """Apply a rule to occurrences matching a path predicate.

    The condition is kept as opaque text; it is only checked when the scope
    is applied to data, never at construction.
    """

    kind: Literal["filter"] = "filter"
    condition: str = Field(description="Predicate such as code.coding.code='HS'")

    def stable_key(self) -> str:
        return f"filter:{self.condition}"

    def check(self) -> None:
        """Raise :class:`InvalidInstanceScopeError` for unusable conditions."""
        if not self.condition or not self.condition.strip():
            raise InvalidInstanceScopeError(
                "FilteredInstances condition cannot be empty", condition=self.condition
            )
        if any(marker in self.condition for marker in _BUNDLE_REFERENCES):
            raise InvalidInstanceScopeError(
                f"Filter condition must not reference Bundle structure. Got: {self.condition}",
                condition=self.condition,
            )


InstanceScope = Annotated[
    Union[AllInstances, FirstInstance, FilteredInstances],
    Field(discriminator="kind"),
]

INSTANCE_SCOPE_ADAPTER: TypeAdapter[AllInstances | FirstInstance | FilteredInstances] = (
    TypeAdapter(InstanceScope)
)


# ==============================================================================
# RULES
# ==============================================================================


class RuleDefinition(RuleBaseModel):
    """A single validation rule as authored in a rule set.

    Only ``type``, ``field_path`` and ``instance_scope`` determine what a rule
    checks; the remaining attributes affect reporting.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    type: str = Field(description="Check kind, e.g. Required or ArrayLength")
    resource_type: str = Field(alias="resourceType")
    field_path: str | None = Field(default=None, alias="fieldPath")
    instance_scope: InstanceScope | None = Field(default=None, alias="instanceScope")
    severity: str = Field(default="error")
    error_code: str | None = Field(default=None, alias="errorCode")
    user_hint: str | None = Field(default=None, alias="userHint", max_length=60)
    params: dict[str, Any] = Field(default_factory=dict)


class RuleSet(RuleBaseModel):
    """Versioned collection of rule definitions."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    version: str = Field(default="1.0")
    project: str | None = None
    fhir_version: str = Field(default="R4", alias="fhirVersion")
    rules: Sequence[RuleDefinition] = Field(default_factory=tuple)

    def rules_for(self, resource_type: str) -> list[RuleDefinition]:
        """Return the rules targeting ``resource_type`` in authoring order."""
        return [rule for rule in self.rules if rule.resource_type == resource_type]


__all__ = [
    "INSTANCE_SCOPE_ADAPTER",
    "AllInstances",
    "FilteredInstances",
    "FirstInstance",
    "InstanceScope",
    "RuleDefinition",
    "RuleSet",
]
