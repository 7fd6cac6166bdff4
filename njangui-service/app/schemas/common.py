"""
Common / shared Pydantic schemas used across multiple endpoints.

Every response body is an envelope::

    {"success": true,  "data": ...}
    {"success": false, "error": "..."}

The models below describe both shapes for the OpenAPI document, plus the
camelCase base model shared by all resource schemas.
"""

from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """
    Base for API schemas: snake_case in Python, camelCase on the wire.

    ``populate_by_name`` lets callers (and ORM objects dumped by FastAPI)
    use either spelling.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel, Generic[DataT]):
    """Envelope returned by every successful request."""

    success: bool = Field(default=True, description="Always ``true`` on success")
    data: DataT


class ErrorResponse(BaseModel):
    """
    Envelope returned by every failed request.

    ``requestId`` is present on 500 responses only; quote it when reporting
    a problem so the server-side log entry can be found.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=False, description="Always ``false`` on failure")
    error: str = Field(
        ...,
        description="Human-readable error description",
        examples=["Fund with this name already exists"],
    )
    request_id: Optional[str] = Field(default=None, alias="requestId")


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    field: str = Field(
        ...,
        description="Arrow-separated path to the invalid field",
        examples=["body -> phoneNumber"],
    )
    message: str = Field(
        ...,
        description="Explanation of the validation failure",
        examples=["Field required"],
    )


class ValidationErrorResponse(BaseModel):
    """Response body for 400 validation failures."""

    success: bool = Field(default=False, description="Always ``false`` on failure")
    error: str = Field(default="Validation failed", description="Summary message")
    details: List[ValidationErrorDetail] = Field(..., description="Per-field validation failures")
