"""
RFC 7807 Problem Details error response schemas.

Implements standard error response format for the API.
"""

from pydantic import BaseModel, ConfigDict, Field

ERROR_TYPE_BASE = "https://dash-ops.io/errors"


class ProblemDetails(BaseModel):
    """
    RFC 7807 Problem Details for HTTP APIs.

    Standard error response format that provides machine-readable details
    about errors in a consistent structure.
    """

    type: str = Field(
        ...,
        description="URI reference that identifies the problem type",
        examples=[f"{ERROR_TYPE_BASE}/validation-failed"],
    )
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code", ge=100, le=599)
    detail: str = Field(
        ..., description="Human-readable explanation specific to this occurrence"
    )
    instance: str = Field(
        ..., description="URI reference that identifies the specific occurrence"
    )
    correlation_id: str | None = Field(
        None, description="Correlation ID for request tracing"
    )
    field: str | None = Field(
        None, description="Descriptor field that failed validation"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "type": f"{ERROR_TYPE_BASE}/validation-failed",
                    "title": "Validation Failed",
                    "status": 400,
                    "detail": "metadata.name: service name too short (min 3 characters)",
                    "instance": "/api/v1/service-catalog/services",
                    "field": "metadata.name",
                },
                {
                    "type": f"{ERROR_TYPE_BASE}/service-not-found",
                    "title": "Service Not Found",
                    "status": 404,
                    "detail": "service 'billing-api' not found",
                    "instance": "/api/v1/service-catalog/services/billing-api",
                },
                {
                    "type": f"{ERROR_TYPE_BASE}/permission-denied",
                    "title": "Permission Denied",
                    "status": 403,
                    "detail": "user 'bob' does not have permission to update service "
                    "'auth-api' (owned by team 'auth-squad')",
                    "instance": "/api/v1/service-catalog/services/auth-api",
                },
            ]
        }
    )
