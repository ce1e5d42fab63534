"""Tests for error models."""

from certsteward.models.errors import ProblemDetail, get_rfc_section_url


def test_get_rfc_section_url_known_status():
    """Test RFC 9110 section URL for a mapped status."""
    assert get_rfc_section_url(404) == (
        "https://datatracker.ietf.org/doc/html/rfc9110#section-15.5.5"
    )


def test_get_rfc_section_url_with_unknown_status():
    """Test unknown status codes fall back to 500 Internal Server Error."""
    assert get_rfc_section_url(999).endswith("#section-15.6.1")


def test_problem_detail_default_type():
    """Test the type URI is derived from the status."""
    problem = ProblemDetail(title="Service Unavailable", status=503)

    assert problem.type.endswith("#section-15.6.4")


def test_problem_detail_keeps_explicit_type():
    """Test an explicit type is not overwritten."""
    problem = ProblemDetail(type="about:blank", title="Conflict", status=409)

    assert problem.type == "about:blank"


def test_problem_detail_serialization_skips_empty_fields():
    """Test optional fields are omitted from the wire format."""
    problem = ProblemDetail(title="Not Found", status=404, detail="missing")

    dumped = problem.model_dump(mode="json", exclude_none=True)

    assert set(dumped) == {"type", "title", "status", "detail"}
