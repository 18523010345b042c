"""Configuration system for the rule core."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# FHIR R4 primitive types; elements of these types are never expanded.
DEFAULT_PRIMITIVE_TYPES: tuple[str, ...] = (
    "boolean",
    "integer",
    "string",
    "decimal",
    "uri",
    "url",
    "canonical",
    "base64Binary",
    "instant",
    "date",
    "dateTime",
    "time",
    "code",
    "oid",
    "id",
    "markdown",
    "unsignedInt",
    "positiveInt",
    "uuid",
    "xhtml",
)


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: str = Field(default="INFO", description="Log level for application output")
    scrub_fields: Sequence[str] = Field(
        default_factory=lambda: ["password", "token", "secret", "authorization"],
        description="Fields that should be redacted in logs",
    )


class SchemaSettings(BaseModel):
    """Schema resolver configuration."""

    max_depth: int = Field(
        default=8,
        ge=1,
        description="Depth at which schema expansion stops even without a cycle",
    )
    primitive_types: Sequence[str] = Field(
        default_factory=lambda: list(DEFAULT_PRIMITIVE_TYPES),
        description="Type names treated as terminal values",
    )
    type_definitions_path: Path | None = Field(
        default=None,
        description="YAML file with element definitions; bundled R4 subset when unset",
    )


class SpecHintSettings(BaseModel):
    """Spec-hint catalog configuration."""

    enabled: bool = Field(default=True, description="Emit advisory spec hints")
    catalog_dir: Path | None = Field(
        default=None,
        description="Directory of catalog JSON files; bundled catalogs when unset",
    )

    @field_validator("catalog_dir")
    @classmethod
    def _ensure_directory(cls, value: Path | None) -> Path | None:
        if value is not None and value.exists() and not value.is_dir():
            raise ValueError("catalog_dir must point to a directory")
        return value


class AppSettings(BaseSettings):
    """Top-level application settings."""

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    schema_resolver: SchemaSettings = Field(default_factory=SchemaSettings)
    spec_hints: SpecHintSettings = Field(default_factory=SpecHintSettings)

    model_config = SettingsConfigDict(env_prefix="MFR_", env_nested_delimiter="__")


def load_settings() -> AppSettings:
    """Build settings from the environment."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Cached accessor used by production code."""
    return load_settings()


__all__ = [
    "DEFAULT_PRIMITIVE_TYPES",
    "AppSettings",
    "LoggingSettings",
    "SchemaSettings",
    "SpecHintSettings",
    "get_settings",
    "load_settings",
]
