"""
Pydantic schemas for Member API request / response serialisation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_serializer, field_validator

from app.models.member import MemberStatus
from app.schemas.common import CamelModel, as_utc


class MemberBase(CamelModel):
    """Fields common to member creation payloads and responses."""

    phone_number: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="Contact phone number (must be unique across members)",
        examples=["555-0100"],
    )
    name: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Full name of the member",
        examples=["Ngozi Tabe"],
    )
    address: Optional[str] = Field(default=None)
    status: MemberStatus = Field(default=MemberStatus.ACTIVE)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_not_blank(cls, v: str) -> str:
        """Reject whitespace-only phone numbers; store the trimmed value."""
        if not v.strip():
            raise ValueError("phoneNumber must not be blank")
        return v.strip()

    @field_validator("name", "address")
    @classmethod
    def strip_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class MemberCreate(MemberBase):
    """
    Schema for ``POST /members``.

    Only ``phoneNumber`` is required.  ``joinDate`` defaults to now.
    """

    join_date: Optional[datetime] = Field(default=None, description="Date the member joined")
    balance: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)


class MemberResponse(MemberBase):
    """Schema returned by all member endpoints."""

    id: UUID
    join_date: datetime
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    @field_validator("join_date", "created_at", "updated_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_serializer("balance")
    @classmethod
    def serialize_decimal_as_number(cls, v: Decimal) -> float:
        return float(v)

    model_config = ConfigDict(from_attributes=True)
