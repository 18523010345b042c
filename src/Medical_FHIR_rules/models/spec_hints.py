"""Spec-hint catalog and issue models."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Issue severities known to the validation pipeline."""

    WARNING = "warning"
    ERROR = "error"


class HintBaseModel(BaseModel):
    """Base configuration shared across spec-hint models."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class SpecHint(HintBaseModel):
    """A field conventionally expected for a resource type.

    ``reason`` is a template rendered with ``{version}``, ``{resource_type}``,
    ``{path}`` and ``{condition}``; it must reference ``{version}``.
    """

    # Catalog files may carry a per-hint severity; hints are always advisory.
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    path: str = Field(min_length=1)
    reason: str
    is_conditional: bool = Field(default=False, alias="isConditional")
    condition: str | None = None
    applies_to_each: bool = Field(default=False, alias="appliesToEach")
    source: str = "HL7"

    @field_validator("reason")
    @classmethod
    def _validate_template(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("reason template must reference {version}")
        try:
            value.format(version="", resource_type="", path="", condition="")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"reason template is not renderable: {exc}") from exc
        return value

    def render_reason(self, *, version: str, resource_type: str) -> str:
        return self.reason.format(
            version=version,
            resource_type=resource_type,
            path=self.path,
            condition=self.condition or "",
        )


class SpecHintCatalog(HintBaseModel):
    """Hints for one FHIR version keyed by resource type."""

    version: str = Field(min_length=1)
    aliases: tuple[str, ...] = Field(default_factory=tuple)
    hints: dict[str, tuple[SpecHint, ...]] = Field(default_factory=dict)

    def hints_for(self, resource_type: str) -> Sequence[SpecHint]:
        return self.hints.get(resource_type, ())

    @property
    def resource_types(self) -> list[str]:
        return list(self.hints)

    @property
    def hint_count(self) -> int:
        return sum(len(items) for items in self.hints.values())


class SpecHintIssue(HintBaseModel):
    """Advisory issue for a field missing from a bundle entry."""

    resource_type: str
    resource_id: str | None = None
    path: str
    reason: str
    severity: Severity = Severity.WARNING
    json_pointer: str | None = None
    entry_index: int | None = Field(default=None, ge=0)
    is_conditional: bool = False
    condition: str | None = None
    applies_to_each: bool = False
    source: str = "HL7"

    @field_validator("severity")
    @classmethod
    def _advisory_only(cls, value: Severity) -> Severity:
        if value is not Severity.WARNING:
            raise ValueError("spec-hint issues are advisory and always use warning severity")
        return value


__all__ = ["HintBaseModel", "Severity", "SpecHint", "SpecHintCatalog", "SpecHintIssue"]
