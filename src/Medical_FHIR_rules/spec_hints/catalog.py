"""Spec-hint catalog loading and version lookup.

Key Responsibilities:
    - Validate catalog documents against a JSON Schema before model
      construction, reporting every violation at once
    - Map normalised FHIR versions and their aliases to catalogs
    - Load the bundled catalogs or a configured directory of JSON files

Collaborators:
    - Upstream: :class:`~Medical_FHIR_rules.spec_hints.service.SpecHintService`
    - Downstream: ``jsonschema`` for document validation, pydantic models in
      :mod:`Medical_FHIR_rules.models.spec_hints`

Side Effects:
    - Reads catalog files from disk or package data at load time
    - Raises :class:`CatalogLoadError` for invalid documents

Thread Safety:
    - Thread-safe after construction: the registry is read-only once built
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from importlib import resources
from pathlib import Path
from typing import Any

import structlog
from jsonschema import Draft202012Validator
from pydantic import ValidationError

from Medical_FHIR_rules.config.settings import SpecHintSettings
from Medical_FHIR_rules.models.spec_hints import SpecHintCatalog
from Medical_FHIR_rules.utils.errors import CatalogLoadError

logger = structlog.get_logger(__name__)

DEFAULT_CATALOG_PACKAGE = "Medical_FHIR_rules.spec_hints.data"

# ==============================================================================
# DOCUMENT SCHEMA
# ==============================================================================

_HINT_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["path", "reason"],
    "properties": {
        "path": {"type": "string", "minLength": 1},
        "reason": {"type": "string", "pattern": r"\{version\}"},
        "isConditional": {"type": "boolean"},
        "condition": {"type": "string", "minLength": 1},
        "appliesToEach": {"type": "boolean"},
        "source": {"type": "string"},
        "severity": {"type": "string"},
    },
    "additionalProperties": False,
    "if": {"properties": {"isConditional": {"const": True}}, "required": ["isConditional"]},
    "then": {"required": ["condition"]},
}

CATALOG_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["version", "hints"],
    "properties": {
        "version": {"type": "string", "minLength": 1},
        "aliases": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "hints": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": _HINT_SCHEMA},
        },
    },
    "additionalProperties": False,
}

_VALIDATOR = Draft202012Validator(CATALOG_SCHEMA)


def normalise_version(version: str | None) -> str:
    return (version or "").strip().upper()


# ==============================================================================
# LOADING
# ==============================================================================


def _schema_errors(document: Any) -> list[str]:
    errors: list[str] = []
    for error in _VALIDATOR.iter_errors(document):
        path = ".".join(str(part) for part in error.path)
        errors.append(f"{path or 'root'}: {error.message}")
    return errors


def parse_catalog(document: Mapping[str, Any], *, source: str = "<memory>") -> SpecHintCatalog:
    """Validate a decoded catalog document and build the catalog model."""
    errors = _schema_errors(document)
    if errors:
        raise CatalogLoadError(source, errors)
    try:
        return SpecHintCatalog.model_validate(document)
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in item['loc']) or 'root'}: {item['msg']}"
            for item in exc.errors()
        ]
        raise CatalogLoadError(source, messages) from exc


def load_catalog_text(content: str, *, source: str = "<memory>") -> SpecHintCatalog:
    try:
        document = json.loads(content)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(source, [f"root: invalid JSON ({exc.msg} at line {exc.lineno})"]) from exc
    return parse_catalog(document, source=source)


def load_catalog(path: Path) -> SpecHintCatalog:
    """Load and validate a single catalog file."""
    return load_catalog_text(path.read_text(encoding="utf-8"), source=str(path))


# ==============================================================================
# REGISTRY
# ==============================================================================


class SpecHintCatalogRegistry:
    """Read-only lookup of catalogs by FHIR version or alias."""

    def __init__(self, catalogs: Iterable[SpecHintCatalog] = ()) -> None:
        self._catalogs: dict[str, SpecHintCatalog] = {}
        self._versions: list[str] = []
        for catalog in catalogs:
            self._register(catalog)

    def _register(self, catalog: SpecHintCatalog) -> None:
        for key in (catalog.version, *catalog.aliases):
            normalised = normalise_version(key)
            existing = self._catalogs.get(normalised)
            if existing is not None and existing is not catalog:
                raise ValueError(
                    f"FHIR version '{key}' is claimed by catalogs "
                    f"'{existing.version}' and '{catalog.version}'"
                )
            self._catalogs[normalised] = catalog
        self._versions.append(catalog.version)

    def get(self, version: str | None) -> SpecHintCatalog | None:
        """Return the catalog for ``version`` or ``None`` when unsupported."""
        return self._catalogs.get(normalise_version(version))

    def is_supported(self, version: str | None) -> bool:
        return self.get(version) is not None

    @property
    def versions(self) -> list[str]:
        return list(self._versions)

    @classmethod
    def from_directory(cls, path: Path) -> SpecHintCatalogRegistry:
        """Load every ``*.json`` catalog in ``path`` in file-name order."""
        catalogs = [load_catalog(item) for item in sorted(path.glob("*.json"))]
        logger.info("spec_hints.catalogs_loaded", path=str(path), catalogs=len(catalogs))
        return cls(catalogs)

    @classmethod
    def default(cls) -> SpecHintCatalogRegistry:
        """Load the catalogs bundled with the package."""
        package = resources.files(DEFAULT_CATALOG_PACKAGE)
        catalogs = [
            load_catalog_text(item.read_text(encoding="utf-8"), source=item.name)
            for item in sorted(package.iterdir(), key=lambda entry: entry.name)
            if item.name.endswith(".json")
        ]
        return cls(catalogs)

    @classmethod
    def from_settings(cls, settings: SpecHintSettings | None = None) -> SpecHintCatalogRegistry:
        settings = settings or SpecHintSettings()
        if settings.catalog_dir is not None:
            return cls.from_directory(settings.catalog_dir)
        return cls.default()


__all__ = [
    "CATALOG_SCHEMA",
    "SpecHintCatalogRegistry",
    "load_catalog",
    "load_catalog_text",
    "normalise_version",
    "parse_catalog",
]
