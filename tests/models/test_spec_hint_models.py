import pytest
from pydantic import ValidationError

from Medical_FHIR_rules.models import Severity, SpecHint, SpecHintCatalog, SpecHintIssue


def test_reason_template_must_reference_version():
    with pytest.raises(ValidationError):
        SpecHint(path="status", reason="Status is required.")
    with pytest.raises(ValidationError):
        SpecHint(path="status", reason="FHIR {version} needs {unknown}.")


def test_render_reason_substitutes_placeholders():
    hint = SpecHint(
        path="communication.language",
        reason="HL7 FHIR {version}: {resource_type}.{path} when {condition}",
        is_conditional=True,
        condition="communication.exists()",
    )
    assert hint.render_reason(version="R4", resource_type="Patient") == (
        "HL7 FHIR R4: Patient.communication.language when communication.exists()"
    )


def test_catalog_lookup_by_resource_type():
    hint = SpecHint(path="status", reason="FHIR {version}")
    catalog = SpecHintCatalog(version="R4", hints={"Observation": (hint,)})
    assert catalog.hints_for("Observation") == (hint,)
    assert catalog.hints_for("Patient") == ()
    assert catalog.hint_count == 1
    assert catalog.resource_types == ["Observation"]


def test_issue_severity_is_always_warning():
    issue = SpecHintIssue(resource_type="Observation", path="Observation.status", reason="r")
    assert issue.severity is Severity.WARNING
    assert issue.severity.value == "warning"
    with pytest.raises(ValidationError):
        SpecHintIssue(
            resource_type="Observation",
            path="Observation.status",
            reason="r",
            severity=Severity.ERROR,
        )
