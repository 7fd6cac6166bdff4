"""
Member domain model.

Represents a njangui group member persisted in the ``members`` table.
Members are identified to the group by their phone number.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel

from app.models.fund import utcnow


class MemberStatus(str, Enum):
    """Membership states."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Member(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for members.

    Constraints:
    - ``phone_number`` has a unique index — a second registration with the
      same number is rejected at DB level even if two requests race.
    - ``created_at`` is indexed; lists are returned newest first.
    """

    __tablename__ = "members"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(phone_number) > 0", name="ck_members_phone_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: Optional[str] = Field(default=None, max_length=255)
    phone_number: str = Field(unique=True, index=True, max_length=32)
    address: Optional[str] = Field(default=None)
    join_date: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )
    status: MemberStatus = Field(default=MemberStatus.ACTIVE)
    balance: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    def __repr__(self) -> str:
        return f"<Member id={self.id} phone='{self.phone_number}' status={self.status.value}>"
