"""
Seed script — populates the database with sample data for development / demo.

Usage (from the njangui-service directory):
    python -m app.seed

Records go through the same services as the API, so the uniqueness rules
apply: re-running the script skips funds and members that already exist.
"""

import asyncio
import logging
from typing import Tuple

from app.core.config import settings
from app.core.exceptions import DuplicateKeyError
from app.core.logging import setup_logging
from app.db.session import Database
from app.models.fund import Fund, FundType
from app.models.member import Member, MemberStatus
from app.repositories.fund_repo import FundRepository
from app.repositories.member_repo import MemberRepository
from app.schemas.fund import FundCreate
from app.schemas.member import MemberCreate
from app.services.fund_service import FundService
from app.services.member_service import MemberService

logger = logging.getLogger(__name__)

FUNDS = [
    FundCreate(
        name="Main Savings",
        description="Monthly member contributions",
        type=FundType.SAVINGS,
        interest_rate=2.5,
    ),
    FundCreate(
        name="Investment Pool",
        description="Pooled capital for group investments",
        type=FundType.INVESTMENT,
        interest_rate=8.0,
    ),
    FundCreate(
        name="Emergency Fund",
        description="Short-term support for members in need",
        type=FundType.EMERGENCY,
    ),
]

MEMBERS = [
    MemberCreate(name="Ngozi Tabe", phone_number="+237 670 000 001", address="Bamenda"),
    MemberCreate(name="Paul Nkeng", phone_number="+237 670 000 002", address="Buea"),
    MemberCreate(name="Esther Fon", phone_number="+237 670 000 003", address="Douala"),
    MemberCreate(
        name="Joseph Atem",
        phone_number="+237 670 000 004",
        status=MemberStatus.INACTIVE,
    ),
]


async def seed(database: Database) -> Tuple[int, int]:
    """
    Insert the sample funds and members.

    Returns ``(funds_created, members_created)``.
    """
    await database.connect()

    funds_created = 0
    members_created = 0
    async with database.session() as session:
        fund_service = FundService(FundRepository(Fund, session))
        for fund_in in FUNDS:
            try:
                await fund_service.create_fund(fund_in)
                funds_created += 1
            except DuplicateKeyError:
                logger.info("Fund '%s' already exists, skipping", fund_in.name)

        member_service = MemberService(MemberRepository(Member, session))
        for member_in in MEMBERS:
            try:
                await member_service.create_member(member_in)
                members_created += 1
            except DuplicateKeyError:
                logger.info("Member %s already exists, skipping", member_in.phone_number)

    logger.info("Seeded %d funds, %d members", funds_created, members_created)
    return funds_created, members_created


async def main() -> None:
    setup_logging()
    database = Database.from_settings(settings)
    try:
        await seed(database)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
