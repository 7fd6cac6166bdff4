"""
Domain exceptions and global exception handlers.

Every error leaves the API in the same envelope the success path uses::

    {"success": false, "error": "<human-readable message>"}

500 responses additionally carry ``requestId`` so a client can quote it
and an operator can find the matching server log line.  400 validation
failures carry a ``details`` list.

Services raise the exceptions below without importing FastAPI; the handlers
registered by :func:`add_exception_handlers` turn them into responses.
Each exception has an internal ``code`` that is logged but never sent.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import request_id_ctx
from app.core.resilience import CircuitBreakerError

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# Domain exceptions  (raised by service layer, caught by handlers below)
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """Base exception for all application-level errors."""

    code = "APP_ERROR"

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class DuplicateKeyError(AppException):
    """Business key already taken (400).  No write was performed."""

    code = "DUPLICATE_KEY"

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class NotFoundException(AppException):
    """Resource not found (404)."""

    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(status_code=404, message=f"{resource} not found")


class PersistenceFailure(AppException):
    """
    Unexpected failure of the database or its connection (500).

    ``message`` is the public, operation-level text (e.g. "Failed to fetch
    funds"); the original exception stays chained as ``__cause__`` and is
    logged by the service that raised this.
    """

    code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str):
        super().__init__(status_code=500, message=message)


# Errors a service turns into PersistenceFailure: anything SQLAlchemy raises,
# OSError (which covers ConnectionError and TimeoutError), and calls rejected
# by an open circuit breaker.
PERSISTENCE_ERRORS = (SQLAlchemyError, OSError, CircuitBreakerError)

VALIDATION_FAILED = "VALIDATION_FAILED"


# ────────────────────────────────────────────────────────────────────────────
# Response helpers
# ────────────────────────────────────────────────────────────────────────────


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request_id_ctx.get()


def error_response(
    request: Request, status_code: int, message: str, details: Any = None
) -> JSONResponse:
    """Build the failure envelope; server errors include the request id."""
    content: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        content["details"] = details
    if status_code >= 500:
        content["requestId"] = _request_id(request)
    return JSONResponse(status_code=status_code, content=content)


# ────────────────────────────────────────────────────────────────────────────
# FastAPI exception handler registration
# ────────────────────────────────────────────────────────────────────────────


def add_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI application instance."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """Handle domain-specific exceptions raised by the service layer."""
        logger.info(
            "%s %s -> %d %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
            extra={"error_code": exc.code, "status_code": exc.status_code},
        )
        return error_response(request, exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTP exceptions (e.g. 404 from path-not-found)."""
        return error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Handle malformed request bodies and path parameters.

        Returns a 400 with one entry per failing field.
        """
        errors = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            errors.append({"field": loc, "message": err["msg"]})
        logger.info(
            "%s %s -> 400 %s",
            request.method,
            request.url.path,
            VALIDATION_FAILED,
            extra={"error_code": VALIDATION_FAILED, "status_code": 400},
        )
        return error_response(request, 400, "Validation failed", errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected exceptions: log with traceback, return a generic 500."""
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return error_response(request, 500, "Internal Server Error")
