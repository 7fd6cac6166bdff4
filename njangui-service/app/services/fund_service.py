"""
Fund service — business logic layer for fund operations.

Raises domain-specific exceptions from ``app.core.exceptions`` so the
service layer stays framework-agnostic (no direct FastAPI imports).

Duplicate names:
    ``create_fund`` checks for an existing fund with the same name first,
    which covers the common case with a clear message.  Two concurrent
    requests can both pass that check; the unique index on ``funds.name``
    then rejects the second insert and the resulting ``IntegrityError`` is
    reported as the same :class:`DuplicateKeyError`.

Persistence failures:
    Any database or connection error is logged here, with its traceback,
    and re-raised as :class:`PersistenceFailure` carrying only a generic
    public message.
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
from app.models.fund import Fund
from app.repositories.fund_repo import FundRepository
from app.schemas.fund import FundCreate

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "Fund with this name already exists"


class FundService:
    """Encapsulates list / create / get + business rules for :class:`Fund`."""

    def __init__(self, fund_repo: FundRepository):
        self._repo = fund_repo

    # ── Queries ──

    async def get_all_funds(self) -> List[Fund]:
        """Return every fund, newest first."""
        try:
            return await self._repo.get_all()
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error fetching funds", extra={"error_code": PersistenceFailure.code}
            )
            raise PersistenceFailure("Failed to fetch funds") from exc

    async def get_fund(self, fund_id: UUID) -> Fund:
        """
        Retrieve a single fund by ID.

        Raises :class:`NotFoundException` if the fund does not exist.
        """
        try:
            fund = await self._repo.get(fund_id)
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error fetching fund %s", fund_id, extra={"error_code": PersistenceFailure.code}
            )
            raise PersistenceFailure("Failed to fetch fund") from exc
        if fund is None:
            raise NotFoundException("Fund")
        return fund

    # ── Commands ──

    async def create_fund(self, fund_in: FundCreate) -> Fund:
        """
        Create a new fund.

        Raises :class:`DuplicateKeyError` if a fund with the same name
        already exists; nothing is written in that case.
        """
        try:
            existing = await self._repo.get_by_name(fund_in.name)
            if existing:
                raise DuplicateKeyError(DUPLICATE_NAME_MESSAGE)

            fund = Fund(**fund_in.model_dump(exclude_none=True))
            try:
                created = await self._repo.create(fund)
            except IntegrityError:
                await self._repo.db.rollback()
                # Either another request won the race for this name, or a
                # CHECK constraint failed.  Only the former is a duplicate.
                if await self._repo.get_by_name(fund_in.name):
                    logger.warning(
                        "IntegrityError caught for duplicate fund name '%s' (race)",
                        fund_in.name,
                        extra={"error_code": DuplicateKeyError.code},
                    )
                    raise DuplicateKeyError(DUPLICATE_NAME_MESSAGE)
                raise
        except PERSISTENCE_ERRORS as exc:
            logger.exception(
                "Error creating fund", extra={"error_code": PersistenceFailure.code}
            )
            raise PersistenceFailure("Failed to create fund") from exc

        logger.info("Created fund %s (%s)", created.id, created.name)
        return created
