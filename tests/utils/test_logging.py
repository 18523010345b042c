import json
import logging

import pytest
import structlog

from Medical_FHIR_rules.bundle import FhirBundle
from Medical_FHIR_rules.config import LoggingSettings
from Medical_FHIR_rules.spec_hints import SpecHintService
from Medical_FHIR_rules.utils.logging import (
    configure_logging,
    correlation_scope,
    get_correlation_id,
)


def _events(caplog, event: str) -> list[dict]:
    payloads = []
    for record in caplog.records:
        try:
            payload = json.loads(record.getMessage())
        except ValueError:
            continue
        if payload.get("event") == event:
            payloads.append(payload)
    return payloads


def test_configure_logging_installs_single_handler():
    configure_logging(level=logging.DEBUG)
    configure_logging(LoggingSettings(level="WARNING"))
    root_logger = logging.getLogger()
    named = [handler for handler in root_logger.handlers if handler.get_name() == "medical_fhir_rules"]
    assert len(named) == 1
    assert root_logger.level == logging.WARNING


def test_structured_events_are_scrubbed_json(caplog):
    configure_logging(LoggingSettings(scrub_fields=["token"]))
    logger = structlog.get_logger("spec_hints")
    with correlation_scope("run-123"):
        logger.info("checked", token="super-secret", detail={"Token": "nested", "keep": 1})

    (payload,) = _events(caplog, "checked")
    assert payload["correlation_id"] == "run-123"
    assert payload["token"] == "***"
    assert payload["detail"] == {"Token": "***", "keep": 1}
    assert payload["level"] == "info"
    assert payload["logger"] == "spec_hints"


def test_debug_events_filtered_below_level(caplog):
    configure_logging(LoggingSettings(level="INFO"))
    structlog.get_logger("resolver").debug("schema.resolved")
    assert _events(caplog, "schema.resolved") == []


def test_correlation_scope_reuses_outer_id_and_restores():
    assert get_correlation_id() is None
    with correlation_scope("outer") as outer:
        with correlation_scope() as inner:
            assert inner == outer == "outer"
        with correlation_scope("explicit") as explicit:
            assert get_correlation_id() == explicit == "explicit"
        assert get_correlation_id() == "outer"
    assert get_correlation_id() is None


def test_correlation_scope_generates_id_when_unbound():
    with correlation_scope() as generated:
        assert generated
        assert get_correlation_id() == generated
    assert get_correlation_id() is None


@pytest.mark.asyncio
async def test_spec_hint_check_binds_correlation_id(caplog, registry):
    configure_logging(LoggingSettings())
    service = SpecHintService(registry)
    bundle = FhirBundle.of({"resourceType": "Observation"})

    await service.check(bundle, "R4", correlation_id="run-7")
    await service.check(bundle, "R4")

    first, second = _events(caplog, "spec_hints.checked")
    assert first["correlation_id"] == "run-7"
    assert second["correlation_id"] and second["correlation_id"] != "run-7"
    assert get_correlation_id() is None
