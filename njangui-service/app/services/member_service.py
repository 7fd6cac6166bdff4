"""
Member service — business logic layer for member operations.

Handles duplicate-phone-number detection before hitting the DB unique
index, providing a friendlier error message to the API consumer.

Race condition note:
    The pre-check ``get_by_phone_number()`` followed by ``create()`` is
    subject to a TOCTOU race: two concurrent registrations with the same
    number could both pass the check.  The unique index is the true safety
    net; the resulting ``IntegrityError`` is translated to the same 400
    duplicate-key error so the client sees one message regardless of timing.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    PERSISTENCE_ERRORS,
    DuplicateKeyError,
    NotFoundException,
    PersistenceFailure,
)
from app.models.member import Member
from app.repositories.member_repo import MemberRepository
from app.schemas.member import MemberCreate

logger = logging.getLogger(__name__)

DUPLICATE_PHONE_MESSAGE = "Member with this phone number already exists"


class MemberService:
    """Encapsulates list / create / get + business rules for :class:`Member`."""

    def __init__(self, member_repo: MemberRepository):
        self._repo = member_repo

    # ── Queries ──

    async def get_all_members(self) -> List[Member]:
        """Return every member, newest first."""
        try:
            return await self._repo.get_all()
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error fetching members", extra={"error_code": PersistenceFailure.code}
            )
            raise PersistenceFailure("Failed to fetch members") from exc

    async def get_member(self, member_id: UUID) -> Member:
        """Retrieve a single member; raises :class:`NotFoundException` if absent."""
        try:
            member = await self._repo.get(member_id)
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error fetching member %s",
                member_id,
                extra={"error_code": PersistenceFailure.code},
            )
            raise PersistenceFailure("Failed to fetch member") from exc
        if member is None:
            raise NotFoundException("Member")
        return member

    # ── Commands ──

    async def create_member(self, member_in: MemberCreate) -> Member:
        """
        Register a new member.

        Raises :class:`DuplicateKeyError` if a member with the same phone
        number already exists.
        """
        try:
            # Optimistic pre-check (fast path for the common duplicate case)
            existing = await self._repo.get_by_phone_number(member_in.phone_number)
            if existing:
                raise DuplicateKeyError(DUPLICATE_PHONE_MESSAGE)

            member = Member(**member_in.model_dump(exclude_none=True))
            try:
                created = await self._repo.create(member)
            except IntegrityError:
                await self._repo.db.rollback()
                if await self._repo.get_by_phone_number(member_in.phone_number):
                    logger.warning(
                        "IntegrityError caught for duplicate phone number '%s' (TOCTOU race)",
                        member_in.phone_number,
                        extra={"error_code": DuplicateKeyError.code},
                    )
                    raise DuplicateKeyError(DUPLICATE_PHONE_MESSAGE)
                raise
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error creating member", extra={"error_code": PersistenceFailure.code}
            )
            raise PersistenceFailure("Failed to create member") from exc

        logger.info("Created member %s (%s)", created.id, created.phone_number)
        return created
