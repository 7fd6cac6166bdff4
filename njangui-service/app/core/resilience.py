"""
Circuit breaker for database access.

Prevents a dead database from tying up every request until its connect
timeout fires.  After ``failure_threshold`` consecutive connection-class
failures the circuit opens and calls fail immediately; after
``recovery_timeout`` seconds a single probe call is let through.

States:
- CLOSED    → Normal operation; failures are counted.
- OPEN      → All calls fail immediately with :class:`CircuitBreakerError`.
- HALF_OPEN → One probe call is allowed; success closes the circuit,
              failure re-opens it.

Request handling never retries: a rejected call surfaces as a 500 from the
service layer, just like any other persistence failure.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Tuple, Type

from sqlalchemy.exc import InterfaceError, OperationalError

from app.core.config import settings

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Possible states of a circuit breaker."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker '{name}' is OPEN, failing fast. "
            f"Retry after {retry_after:.1f}s."
        )


class CircuitBreaker:
    """
    Async circuit breaker.

    Parameters
    ----------
    name : str
        Human-readable identifier (e.g. ``"database"``).
    failure_threshold : int
        Number of consecutive failures before the circuit opens.
    recovery_timeout : float
        Seconds to wait in OPEN state before allowing a probe (HALF_OPEN).
    expected_exceptions : tuple
        Exception types that count as failures. All others pass through
        without affecting the circuit state.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        expected_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: float = 0.0
        self._success_count = 0

    @property
    def state(self) -> CircuitState:
        """Current circuit state, with automatic OPEN → HALF_OPEN transition."""
        if self._state == CircuitState.OPEN:
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info(
                    "Circuit '%s' → HALF_OPEN (recovery timeout elapsed after %.1fs)",
                    self.name,
                    elapsed,
                )
        return self._state

    def _record_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info(
                "Circuit '%s' → CLOSED (successful probe after %d failures)",
                self.name,
                self._failure_count,
            )
        self._failure_count = 0
        self._success_count += 1
        self._state = CircuitState.CLOSED

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.error(
                "Circuit '%s' → OPEN (failure #%d reached threshold %d). "
                "Calls will fast-fail for %.1fs.",
                self.name,
                self._failure_count,
                self.failure_threshold,
                self.recovery_timeout,
            )
        else:
            logger.warning(
                "Circuit '%s' failure #%d/%d",
                self.name,
                self._failure_count,
                self.failure_threshold,
            )

    async def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        """
        Execute ``func`` through the circuit breaker.

        Raises :class:`CircuitBreakerError` if the circuit is OPEN.
        """
        state = self.state

        if state == CircuitState.OPEN:
            retry_after = self.recovery_timeout - (
                time.monotonic() - self._last_failure_time
            )
            raise CircuitBreakerError(self.name, max(retry_after, 0))

        try:
            result = await func(*args, **kwargs)
        except self.expected_exceptions:
            self._record_failure()
            raise
        self._record_success()
        return result

    def reset(self) -> None:
        """Force the circuit back to CLOSED with zeroed counters."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = 0.0

    def get_status(self) -> dict:
        """Return a dict suitable for the health-check endpoint."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "success_count": self._success_count,
            "recovery_timeout_s": self.recovery_timeout,
        }


# ── Global circuit breaker instance for database operations ──
# Only connection-class errors count; constraint violations and bad queries
# say nothing about the database being reachable.
db_circuit_breaker = CircuitBreaker(
    name="database",
    failure_threshold=settings.CB_FAILURE_THRESHOLD,
    recovery_timeout=settings.CB_RECOVERY_TIMEOUT,
    expected_exceptions=(
        ConnectionError,
        OSError,
        TimeoutError,
        OperationalError,
        InterfaceError,
    ),
)
