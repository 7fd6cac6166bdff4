"""
Pydantic schemas for Fund API request / response serialisation.

Only ``name`` is required on create.  The remaining fields are typed and
validated when present; fields the API does not know are dropped.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_serializer, field_validator

from app.models.fund import FundType
from app.schemas.common import CamelModel, as_utc


class FundBase(CamelModel):
    """Fields common to fund creation payloads and responses."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Name of the fund (unique across funds)",
        examples=["Group A"],
    )
    description: Optional[str] = Field(default=None, description="Free-text description")
    type: Optional[FundType] = Field(default=None, description="savings, investment or emergency")
    interest_rate: float = Field(
        default=0,
        ge=0,
        le=100,
        description="Annual interest rate in percent",
        examples=[5.0],
    )

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, v: str) -> str:
        """Reject whitespace-only names; store the trimmed value."""
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class FundCreate(FundBase):
    """
    Schema for ``POST /funds``.

    ``totalAmount`` and ``interestEarned`` may be supplied when recording an
    existing fund; both default to zero.
    """

    total_amount: Decimal = Field(
        default=Decimal("0"),
        max_digits=20,
        decimal_places=2,
        description="Current fund balance",
    )
    interest_earned: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=20, decimal_places=2
    )


class FundResponse(FundBase):
    """Schema returned by all fund endpoints."""

    id: UUID
    total_amount: Decimal
    interest_earned: Decimal
    last_interest_distribution_date: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator(
        "last_interest_distribution_date", "created_at", "updated_at", mode="after"
    )
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_serializer("total_amount", "interest_earned")
    @classmethod
    def serialize_decimal_as_number(cls, v: Decimal) -> float:
        """Serialize Decimal as a JSON number rather than Pydantic's default string."""
        return float(v)

    model_config = ConfigDict(from_attributes=True)
