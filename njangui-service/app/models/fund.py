"""
Fund domain model.

Represents a pooled fund (savings, investment, emergency) persisted in the
``funds`` table.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FundType(str, Enum):
    """Kinds of fund a group can run."""

    SAVINGS = "savings"
    INVESTMENT = "investment"
    EMERGENCY = "emergency"


class Fund(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for funds.

    Constraints:
    - ``name`` has a unique index.  The service checks for an existing name
      before inserting, but the index is what makes concurrent creates safe.
    - ``interest_rate`` is a percentage in [0, 100].
    - ``created_at`` is indexed; lists are returned newest first.
    """

    __tablename__ = "funds"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_funds_name_not_empty"),
        CheckConstraint(
            "interest_rate >= 0 AND interest_rate <= 100",
            name="ck_funds_interest_rate_range",
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=255)
    description: Optional[str] = Field(default=None)
    type: Optional[FundType] = Field(default=None)
    interest_rate: float = Field(default=0)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    interest_earned: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=2)
    last_interest_distribution_date: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )
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
        return f"<Fund id={self.id} name='{self.name}'>"
