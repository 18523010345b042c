import pytest
from prometheus_client import REGISTRY

from Medical_FHIR_rules.bundle import FhirBundle
from Medical_FHIR_rules.schema import SchemaResolver
from Medical_FHIR_rules.spec_hints import SpecHintService


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_schema_lookups_are_counted(type_source):
    resolver = SchemaResolver(type_source)
    before = {
        outcome: _sample("fhir_schema_cache_lookups_total", {"outcome": outcome})
        for outcome in ("hit", "miss", "unknown")
    }
    await resolver.resolve_schema("Period")
    await resolver.resolve_schema("Period")
    await resolver.resolve_schema("Nope")

    for outcome in ("hit", "miss", "unknown"):
        after = _sample("fhir_schema_cache_lookups_total", {"outcome": outcome})
        assert after - before[outcome] == 1


@pytest.mark.asyncio
async def test_spec_hint_issues_are_counted(registry):
    labels = {"fhir_version": "R4", "resource_type": "Encounter"}
    before = _sample("fhir_spec_hint_issues_total", labels)
    await SpecHintService(registry).check(FhirBundle.of({"resourceType": "Encounter"}), "4.0.1")
    assert _sample("fhir_spec_hint_issues_total", labels) - before == 2
