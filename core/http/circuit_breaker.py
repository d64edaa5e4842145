"""
Async circuit breaker for the fleet backend and Nominatim.

Once a service has failed often enough in a row, calls are refused without
touching the network until a cool-down has passed. Trip playback then falls
back to approximate trajectories and coordinate labels right away instead
of waiting on timeouts for every trip.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

CLOSED: Final = "closed"
OPEN: Final = "open"
HALF_OPEN: Final = "half-open"


class CircuitOpen(Exception):
    """A call was refused because the service's circuit is open."""

    def __init__(self, service: str, resets_in: float) -> None:
        super().__init__(
            f"Circuit breaker open for {service} (resets in {resets_in:.0f}s)"
        )
        self.service = service
        self.resets_in = resets_in


class CircuitBreaker:
    """
    Consecutive-failure breaker: closed, then open, then half-open.

    Parameters
    ----------
    service : str
        Name used in logs and in :class:`CircuitOpen`.
    failure_threshold : int
        Consecutive failures that open the circuit.
    recovery_timeout : float
        Seconds the circuit stays open before one probe call is let through.
    clock : callable
        Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        service: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service = service
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def state(self) -> str:
        if self._opened_at is None:
            return CLOSED
        if self.retry_after > 0:
            return OPEN
        return HALF_OPEN

    @property
    def retry_after(self) -> float:
        """Seconds until a probe is allowed; 0 when not open."""
        if self._opened_at is None:
            return 0.0
        elapsed = self._clock() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _open(self) -> None:
        self._opened_at = self._clock()

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info("Circuit breaker CLOSED for %s", self.service)
        self.reset()

    def record_failure(self) -> None:
        state = self.state
        self._failures += 1
        if state == HALF_OPEN:
            self._open()
            logger.warning(
                "Circuit breaker re-OPEN for %s (half-open probe failed)",
                self.service,
            )
        elif state == CLOSED and self._failures >= self.failure_threshold:
            self._open()
            logger.warning(
                "Circuit breaker OPEN for %s after %d failures",
                self.service,
                self._failures,
            )

    def reset(self) -> None:
        self._failures = 0
        self._opened_at = None

    def check(self) -> None:
        """Raise :class:`CircuitOpen` unless a call may go through."""
        if self.state == OPEN:
            raise CircuitOpen(self.service, self.retry_after)


fleet_api_breaker = CircuitBreaker(
    "Fleet API", failure_threshold=5, recovery_timeout=30
)
nominatim_breaker = CircuitBreaker(
    "Nominatim", failure_threshold=5, recovery_timeout=60
)


def with_circuit_breaker(breaker: CircuitBreaker):
    """Guard an async callable with ``breaker``."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            breaker.check()
            try:
                result = await fn(*args, **kwargs)
            except CircuitOpen:
                raise
            except Exception:
                breaker.record_failure()
                raise
            breaker.record_success()
            return result

        return wrapper

    return decorator
