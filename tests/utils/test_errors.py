from Medical_FHIR_rules.utils.errors import (
    CatalogLoadError,
    FoundationError,
    InvalidInstanceScopeError,
    ProblemDetail,
)


def test_problem_detail_model_dump_drops_empty_fields():
    problem = ProblemDetail(title="Error", status=400, detail="Bad")
    payload = problem.model_dump()
    assert payload == {"title": "Error", "status": 400, "detail": "Bad", "type": "about:blank"}


def test_foundation_error_wraps_problem():
    error = FoundationError("Oops", status=404)
    assert error.problem.status == 404
    assert str(error) == "Oops"


def test_catalog_load_error_carries_every_message():
    error = CatalogLoadError("r4.json", ["root: 'version' is a required property", "hints: bad"])
    assert error.errors == ["root: 'version' is a required property", "hints: bad"]
    assert error.problem.status == 500
    assert error.problem.detail == "root: 'version' is a required property; hints: bad"
    assert isinstance(error, FoundationError)


def test_invalid_scope_error_is_a_value_error():
    error = InvalidInstanceScopeError("bad scope", condition="entry.x")
    assert isinstance(error, ValueError)
    assert error.problem.status == 422
