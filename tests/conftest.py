from __future__ import annotations

import logging

import pytest
import structlog

from Medical_FHIR_rules.config.settings import get_settings
from Medical_FHIR_rules.schema import InMemoryTypeDefinitionSource, SchemaResolver
from Medical_FHIR_rules.spec_hints import SpecHintCatalogRegistry


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for name in (
        "MFR_LOGGING__LEVEL",
        "MFR_SCHEMA_RESOLVER__MAX_DEPTH",
        "MFR_SPEC_HINTS__CATALOG_DIR",
        "MFR_SPEC_HINTS__ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == "medical_fhir_rules":
            root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def type_source() -> InMemoryTypeDefinitionSource:
    return InMemoryTypeDefinitionSource.default()


@pytest.fixture
def resolver(type_source) -> SchemaResolver:
    return SchemaResolver(type_source)


@pytest.fixture
def registry() -> SpecHintCatalogRegistry:
    return SpecHintCatalogRegistry.default()
