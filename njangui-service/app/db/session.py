"""
Database connection management.

:class:`Database` owns the async SQLAlchemy engine and session factory.  One
instance is created in the application lifespan, stored on
``app.state.database`` and handed to request handlers through the
:func:`get_db` dependency; nothing in the request path touches a
module-level engine.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import Settings
from app.core.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


class DatabaseUnavailableError(ConnectionError):
    """The backing store could not be reached."""


class Database:
    """
    Scoped connection pool with an explicit lifecycle.

    - ``connect()`` verifies connectivity and creates tables.  It is
      idempotent: once it has succeeded, later calls return immediately.
    - ``session()`` hands out a new :class:`AsyncSession` bound to the pool.
    - ``dispose()`` releases every pooled connection (call at shutdown).
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any):
        self.url = url
        if url.startswith("sqlite"):
            # StaticPool forces every connection to share the same in-memory
            # database; without it each connection would see an empty one.
            engine_options.setdefault("connect_args", {"check_same_thread": False})
            engine_options.setdefault("poolclass", StaticPool)
        else:
            # Lightweight SELECT 1 before handing out a pooled connection.
            engine_options.setdefault("pool_pre_ping", True)

        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self._sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            # Attribute access after commit() must not trigger a lazy load.
            expire_on_commit=False,
        )
        self._connected = False

        if url.startswith("sqlite"):
            _enable_sqlite_foreign_keys(self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a PostgreSQL (pooled) or in-memory SQLite database from settings."""
        if settings.USE_SQLITE:
            return cls(settings.DATABASE_URL, echo=settings.DEBUG)
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """
        Establish connectivity and create tables (and their unique indexes).

        Raises :class:`DatabaseUnavailableError` if the store is unreachable.
        """
        if self._connected:
            return

        # Registers every table model with SQLModel.metadata.
        import app.db.base  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            raise DatabaseUnavailableError(f"Database unreachable: {exc}") from exc
        self._connected = True
        logger.info("Database tables ready")

    async def connect_with_retry(self, attempts: int, delay: float) -> bool:
        """
        Call :meth:`connect` up to ``attempts`` times with exponential back-off.

        Returns ``False`` instead of raising when every attempt failed, so the
        application can start in degraded mode.
        """
        for attempt in range(1, attempts + 1):
            try:
                logger.info("Connecting to database (attempt %d/%d)…", attempt, attempts)
                await self.connect()
                return True
            except DatabaseUnavailableError as exc:
                if attempt < attempts:
                    logger.warning(
                        "Database connection failed (attempt %d/%d): %s — retrying in %.1fs…",
                        attempt,
                        attempts,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                else:
                    logger.error(
                        "Could not connect to database after %d attempts. "
                        "Starting in DEGRADED mode — database-dependent endpoints "
                        "will return 500 until the database is reachable. "
                        "Last error: %s",
                        attempts,
                        exc,
                    )
        return False

    def session(self) -> AsyncSession:
        return self._sessionmaker()

    async def ping(self) -> bool:
        """Return ``True`` if a trivial query succeeds."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
        self._connected = False


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # aiosqlite delegates to a sync connection, so listen on the sync engine.
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_database(request: Request) -> Database:
    """
    Return the application's :class:`Database` (set up by the lifespan).

    Raises :class:`PersistenceFailure` when no database was initialised, so
    the client gets the usual 500 envelope with its request id.
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        logger.error(
            "No database initialised for %s %s",
            request.method,
            request.url.path,
            extra={"error_code": PersistenceFailure.code},
        )
        raise PersistenceFailure("Database unavailable")
    return database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.

    The session is closed when the request finishes, returning its
    connection to the pool.
    """
    database = get_database(request)
    if not database.is_connected:
        # Degraded start: try again so tables appear once the database is back.
        # On failure the request goes on and its query fails in the service.
        try:
            await database.connect()
        except DatabaseUnavailableError as exc:
            logger.warning("Database still unavailable: %s", exc)
    async with database.session() as session:
        yield session
