"""
Generic async repository (Data Access Layer).

Implements the Repository pattern on top of SQLAlchemy's ``AsyncSession``.
Concrete repositories inherit from ``BaseRepository[T]`` and add look-ups
by their business key.

- ``get_all()`` returns newest first (``created_at`` descending).
- **IntegrityError** is NOT caught here: a unique-index violation on insert
  means "duplicate key" and only the service knows the right message.
- **OperationalError** (connection loss, deadlock) during commit rolls the
  session back and re-raises, so a broken transaction never leaks.
- Every call goes through ``db_circuit_breaker``.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlmodel import SQLModel

from app.core.resilience import db_circuit_breaker

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository for SQLModel entities that carry ``created_at``.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        An active async database session (injected per-request).
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def _execute_with_circuit_breaker(
        self, func: Any, *args: Any, **kwargs: Any
    ) -> Any:
        return await db_circuit_breaker.call(func, *args, **kwargs)

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch a single entity by primary key.  Returns ``None`` if not found."""

        async def _get() -> Optional[ModelType]:
            return await self.db.get(self.model, id)

        return await self._execute_with_circuit_breaker(_get)

    async def get_all(self) -> List[ModelType]:
        """Return every entity, most recently created first."""

        async def _get_all() -> List[ModelType]:
            stmt = select(self.model).order_by(self.model.created_at.desc())
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._execute_with_circuit_breaker(_get_all)

    async def get_by(self, field: str, value: Any) -> Optional[ModelType]:
        """Return the first entity whose ``field`` equals ``value``, or ``None``."""

        async def _get_by() -> Optional[ModelType]:
            stmt = select(self.model).where(getattr(self.model, field) == value)
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._execute_with_circuit_breaker(_get_by)

    async def create(self, obj_in: ModelType) -> ModelType:
        """
        Insert a new entity and return the refreshed instance.

        **OperationalError** triggers a rollback before re-raising.
        **IntegrityError** propagates untouched.
        """

        async def _create() -> ModelType:
            self.db.add(obj_in)
            try:
                await self.db.commit()
            except OperationalError:
                await self.db.rollback()
                logger.error("OperationalError during create for %s", self.model.__name__)
                raise
            await self.db.refresh(obj_in)
            return obj_in

        return await self._execute_with_circuit_breaker(_create)

    async def count(self) -> int:
        """Return the total number of entities of this type."""

        async def _count() -> int:
            stmt = select(func.count()).select_from(self.model)
            result = await self.db.execute(stmt)
            return result.scalar_one()

        return await self._execute_with_circuit_breaker(_count)
