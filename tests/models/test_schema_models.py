import pytest
from pydantic import ValidationError

from Medical_FHIR_rules.models import ElementDefinition, FieldSchemaNode


def _tree() -> FieldSchemaNode:
    family = FieldSchemaNode(element_name="family", path="Patient.name.family", type="string")
    given = FieldSchemaNode(element_name="given", path="Patient.name.given", type="string", max="*")
    name = FieldSchemaNode(
        element_name="name",
        path="Patient.name",
        type="HumanName",
        max="*",
        children=(family, given),
    )
    gender = FieldSchemaNode(element_name="gender", path="Patient.gender", type="code")
    return FieldSchemaNode(
        element_name="Patient", path="Patient", type="Patient", min=1, children=(name, gender)
    )


def test_cardinality_properties():
    root = _tree()
    assert root.is_required
    assert not root.is_array
    assert root.child("name").is_array
    assert not root.child("gender").is_required


def test_find_accepts_relative_and_qualified_paths():
    root = _tree()
    assert root.find("name.family").path == "Patient.name.family"
    assert root.find("Patient.name.given").path == "Patient.name.given"
    assert root.find("name.prefix") is None
    assert root.find("") is root


def test_walk_is_pre_order():
    assert [node.path for node in _tree().walk()] == [
        "Patient",
        "Patient.name",
        "Patient.name.family",
        "Patient.name.given",
        "Patient.gender",
    ]


@pytest.mark.parametrize(("raw", "expected"), [(1, "1"), (0, "0"), ("*", "*"), ("unbounded", "unbounded"), ("3", "3")])
def test_max_is_normalised(raw, expected):
    assert ElementDefinition(element_name="x", declared_type="string", max=raw).max == expected


@pytest.mark.parametrize("raw", [-1, "many", True])
def test_invalid_max_is_rejected(raw):
    with pytest.raises(ValidationError):
        ElementDefinition(element_name="x", declared_type="string", max=raw)


def test_unbounded_alias_counts_as_array():
    node = FieldSchemaNode(element_name="line", path="Address.line", type="string", max="unbounded")
    assert node.is_array
