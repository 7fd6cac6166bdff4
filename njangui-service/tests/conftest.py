"""
Shared pytest fixtures.

Unit tests mock the repository / service layers.  End-to-end tests use a
real :class:`Database` on in-memory SQLite (aiosqlite), so no external
database is needed and every test starts from empty tables.
"""

import os

# Must be set before ``app.core.config`` is imported anywhere.
os.environ.setdefault("USE_SQLITE", "true")

import uuid  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from app.core.resilience import db_circuit_breaker  # noqa: E402
from app.db.session import Database  # noqa: E402
from app.models.fund import Fund, FundType  # noqa: E402
from app.models.member import Member, MemberStatus  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers — create domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

FUND_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
MEMBER_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


def make_fund(
    *,
    id: uuid.UUID = FUND_ID,
    name: str = "Group A",
    type: Optional[FundType] = FundType.SAVINGS,
    interest_rate: float = 0,
    total_amount: Decimal = Decimal("0"),
    created_at: Optional[datetime] = None,
) -> Fund:
    """Create a Fund domain object with sensible test defaults."""
    now = created_at or datetime.now(timezone.utc)
    return Fund(
        id=id,
        name=name,
        type=type,
        interest_rate=interest_rate,
        total_amount=total_amount,
        interest_earned=Decimal("0"),
        last_interest_distribution_date=now,
        created_at=now,
        updated_at=now,
    )


def make_member(
    *,
    id: uuid.UUID = MEMBER_ID,
    name: Optional[str] = "Ngozi Tabe",
    phone_number: str = "555-0100",
    status: MemberStatus = MemberStatus.ACTIVE,
    created_at: Optional[datetime] = None,
) -> Member:
    """Create a Member domain object with sensible test defaults."""
    now = created_at or datetime.now(timezone.utc)
    return Member(
        id=id,
        name=name,
        phone_number=phone_number,
        status=status,
        balance=Decimal("0"),
        join_date=now,
        created_at=now,
        updated_at=now,
    )


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/commit/refresh/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    return session


@pytest_asyncio.fixture()
async def database():
    """A connected in-memory SQLite database, disposed after the test."""
    db = Database("sqlite+aiosqlite://")
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture(autouse=True)
def _reset_circuit_breaker():
    """Keep failures recorded by one test from opening the circuit for the next."""
    db_circuit_breaker.reset()
    yield
    db_circuit_breaker.reset()
