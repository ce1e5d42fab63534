"""Error response models following RFC 7807 Problem Details."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

# RFC 9110 sections per status code
status_to_section: dict[int, str] = {
    400: "15.5.1",
    404: "15.5.5",
    405: "15.5.6",
    409: "15.5.10",
    422: "15.5.21",
    500: "15.6.1",
    503: "15.6.4",
}


def get_rfc_section_url(status: int) -> str:
    """Get the RFC section URL for a given HTTP status code.

    Args:
        status: The HTTP status code.

    Returns:
        The URL to the corresponding section in the RFC.
    """
    base_url = "https://datatracker.ietf.org/doc/html/rfc9110#section-"
    return f"{base_url}{status_to_section.get(status, '15.6.1')}"


class ValidationErrorDetail(BaseModel):
    """Validation error detail for a specific field.

    Attributes:
        type: Error type (e.g., "value_error", "missing").
        loc: Location of the error in the request (e.g., ["body", "secret_name"]).
        msg: Human-readable error message.
        input: The invalid input value that caused the error.
        ctx: Additional context about the error (optional).
    """

    type: str = Field(..., description="Error type")
    loc: tuple[str, ...] = Field(..., description="Error location in request")
    msg: str = Field(..., description="Human-readable error message")
    input: Any = Field(None, description="Invalid input value")
    ctx: dict[str, Any] | None = Field(None, description="Additional error context")


class ProblemDetail(BaseModel):
    """Problem Detail response as defined in RFC 7807.

    Attributes:
        type: URI reference to the problem type (auto-generated from status).
        title: Short, human-readable summary of the problem type.
        status: HTTP status code.
        detail: Human-readable explanation specific to this occurrence.
        instance: URI reference identifying the specific occurrence.
        reason: Controller reason code, when the error comes from the controller.
        errors: List of validation errors (for 422 responses).
    """

    type: str | None = Field(
        default=None,
        description="URI reference to the problem type (RFC 7807)",
    )
    title: str = Field(
        ...,
        description="Short, human-readable summary",
        json_schema_extra={"example": "Not Found"},
    )
    status: int = Field(
        ...,
        description="HTTP status code",
        json_schema_extra={"example": 404},
    )
    detail: str | None = Field(
        default=None,
        description="Human-readable explanation",
        json_schema_extra={"example": "Certificate default/web not found"},
    )
    instance: str | None = Field(
        default=None,
        description="URI reference identifying this occurrence",
        json_schema_extra={"example": "/api/v1/certificates/default/web"},
    )
    reason: str | None = Field(
        default=None,
        description="Controller reason code",
        json_schema_extra={"example": "StoreUnavailable"},
    )
    errors: list[ValidationErrorDetail] | None = Field(
        default=None,
        description="Validation errors (for 422 responses)",
    )

    @model_validator(mode="before")
    @classmethod
    def set_default_type(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Set the default type based on the status if not provided."""
        if values.get("type") is None:
            values["type"] = get_rfc_section_url(values.get("status", 500))
        return values
