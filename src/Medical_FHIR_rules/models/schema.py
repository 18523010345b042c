"""Field-schema models produced by the schema resolver."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNBOUNDED_MAX = frozenset({"*", "unbounded"})


def _normalise_max(value: object) -> str:
    if isinstance(value, bool):
        raise ValueError("max must be a non-negative integer, '*' or 'unbounded'")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("max must be non-negative")
        return str(value)
    text = str(value).strip()
    if text in UNBOUNDED_MAX or text.isdigit():
        return text
    raise ValueError(f"Unsupported max cardinality: {value!r}")


class SchemaBaseModel(BaseModel):
    """Base model that enforces strict validation across schema models."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ElementDefinition(SchemaBaseModel):
    """One element of a type as published by a type-definition source."""

    element_name: str = Field(min_length=1)
    declared_type: str = Field(min_length=1)
    min: int = Field(default=0, ge=0)
    max: str = Field(default="1")

    @field_validator("max", mode="before")
    @classmethod
    def _coerce_max(cls, value: object) -> str:
        return _normalise_max(value)


class FieldSchemaNode(SchemaBaseModel):
    """A node in a resolved type's field tree.

    ``truncated`` marks nodes whose children were intentionally left empty
    because their type was already being resolved higher up the same branch,
    or because the depth guard was reached.
    """

    element_name: str
    path: str
    type: str
    min: int = Field(default=0, ge=0)
    max: str = Field(default="1")
    children: tuple[FieldSchemaNode, ...] = Field(default_factory=tuple)
    truncated: bool = False

    @field_validator("max", mode="before")
    @classmethod
    def _coerce_max(cls, value: object) -> str:
        return _normalise_max(value)

    @property
    def is_required(self) -> bool:
        return self.min >= 1

    @property
    def is_array(self) -> bool:
        return self.max in UNBOUNDED_MAX or int(self.max) > 1

    def child(self, name: str) -> FieldSchemaNode | None:
        for candidate in self.children:
            if candidate.element_name == name:
                return candidate
        return None

    def find(self, path: str) -> FieldSchemaNode | None:
        """Return the descendant at a dotted path relative to this node.

        A leading segment equal to this node's element name is accepted, so
        both ``name.family`` and ``Patient.name.family`` resolve from the
        ``Patient`` root.
        """
        segments = [segment for segment in path.split(".") if segment]
        if segments and segments[0] == self.element_name and self.child(segments[0]) is None:
            segments = segments[1:]
        node: FieldSchemaNode | None = self
        for segment in segments:
            if node is None:
                return None
            node = node.child(segment)
        return node

    def walk(self) -> Iterator[FieldSchemaNode]:
        """Yield this node and every descendant in declaration order."""
        yield self
        for child in self.children:
            yield from child.walk()


__all__ = ["UNBOUNDED_MAX", "ElementDefinition", "FieldSchemaNode"]
