import pytest

from Medical_FHIR_rules.bundle import FhirResource
from Medical_FHIR_rules.rules import matches, parse_predicate
from Medical_FHIR_rules.rules.predicates import And, Empty, Equals, Exists, Or

OBSERVATION = {
    "resourceType": "Observation",
    "status": "final",
    "code": {"coding": [{"system": "http://loinc.org", "code": "8867-4"}]},
    "component": [{"code": {"text": "HR"}}, {"valueString": "n/a"}],
    "note": [],
}


def test_parse_supported_forms():
    assert parse_predicate("status='final'") == Equals("status", "final")
    assert parse_predicate("status != 'final'") == Equals("status", "final", negated=True)
    assert parse_predicate("component.exists()") == Exists("component")
    assert parse_predicate("note.empty()") == Empty("note")


def test_and_binds_tighter_than_or():
    parsed = parse_predicate("a.exists() or b.exists() and c.exists()")
    assert parsed == Or(Exists("a"), And(Exists("b"), Exists("c")))


def test_parentheses_and_quoted_keywords():
    parsed = parse_predicate("(a.exists() or b.exists()) and text='x and y'")
    assert parsed == And(Or(Exists("a"), Exists("b")), Equals("text", "x and y"))


@pytest.mark.parametrize("expression", ["", "   ", "status", "where(x)", "a.exists() and", "Patient.name.count() > 1"])
def test_unsupported_expressions_parse_to_none(expression):
    assert parse_predicate(expression) is None


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("status='final'", True),
        ("status='amended'", False),
        ("status!='amended'", True),
        ("code.coding.code='8867-4'", True),
        ("component.exists()", True),
        ("component.code.exists()", True),
        ("note.exists()", False),
        ("note.empty()", True),
        ("subject.reference!='x'", False),
        ("status='final' and note.exists()", False),
        ("status='amended' or component.exists()", True),
    ],
)
def test_evaluation_against_mapping(expression, expected):
    assert matches(expression, OBSERVATION) is expected


def test_evaluation_against_parsed_resource():
    assert matches("code.coding.system='http://loinc.org'", FhirResource(OBSERVATION)) is True


def test_boolean_values_compare_as_fhir_literals():
    assert matches("active='true'", {"active": True}) is True
    assert matches("active='false'", {"active": True}) is False


def test_matches_returns_none_when_unparseable():
    assert matches("status ~ 'final'", OBSERVATION) is None
