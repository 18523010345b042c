"""Version-specific advisory hints for conventionally required FHIR fields."""

from .catalog import (
    CATALOG_SCHEMA,
    SpecHintCatalogRegistry,
    load_catalog,
    load_catalog_text,
    normalise_version,
    parse_catalog,
)
from .generator import SpecHintGenerator, catalog_document
from .service import SpecHintService

__all__ = [
    "CATALOG_SCHEMA",
    "SpecHintCatalogRegistry",
    "SpecHintGenerator",
    "SpecHintService",
    "catalog_document",
    "load_catalog",
    "load_catalog_text",
    "normalise_version",
    "parse_catalog",
]
