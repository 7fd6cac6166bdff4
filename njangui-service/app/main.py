"""
Njangui Tracker API — Application entry-point.

Initializes the FastAPI application, registers middleware, exception handlers,
routers, and manages the application lifecycle (database connect on
startup, pool disposal on shutdown).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import add_exception_handlers
from app.core.logging import setup_logging
from app.core.resilience import db_circuit_breaker
from app.db.session import Database
from app.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ────────────────────────────────────────────────────────────────────────────
# Application lifespan
# ────────────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
      - Builds the :class:`Database` from settings and stores it on
        ``app.state.database`` for the ``get_db`` dependency.
      - Connects and creates tables, with exponential back-off.  If the
        database stays unreachable the app starts in degraded mode
        (``/health`` reports ``database: false``).

    Shutdown:
      - Disposes of the connection pool.
    """
    database = Database.from_settings(settings)
    app.state.database = database
    await database.connect_with_retry(
        attempts=settings.DB_CONNECT_RETRIES,
        delay=settings.DB_CONNECT_RETRY_DELAY,
    )

    yield

    logger.info("Shutting down — disposing connection pool")
    await database.dispose()


# ────────────────────────────────────────────────────────────────────────────
# FastAPI application instance
# ────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=API_VERSION,
    description="Internal API for tracking njangui funds, members and lending.",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


# ── Middleware (order matters: last added = outermost) ──
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Global error handlers ──
add_exception_handlers(app)

# ── API routers ──
app.include_router(api_router, prefix=settings.API_V1_STR)


# ── Health check ──


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Liveness / readiness probe.

    Runs ``SELECT 1`` against the database and reports circuit breaker state.
    Always answers 200; ``status`` is ``degraded`` when the database is
    unreachable.
    """
    database = getattr(request.app.state, "database", None)
    db_healthy = database is not None and await database.ping()

    return {
        "status": "ok" if db_healthy else "degraded",
        "version": API_VERSION,
        "database": db_healthy,
        "circuit_breaker": db_circuit_breaker.get_status(),
    }
