"""Retry policy for outbound HTTP calls.

Only transport failures are retried: connection resets, disconnects and
timeouts. HTTP status errors reach callers as ``ExternalServiceError``
from ``request_json`` and are never retried.
"""

from __future__ import annotations

import asyncio
import logging

from aiohttp import ClientError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    ClientError,
    asyncio.TimeoutError,
)


def retry_async(
    max_retries: int = 2,
    retry_delay: float = 0.5,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
):
    """Build a tenacity decorator for async callables.

    Args:
        max_retries: Attempts after the first one.
        retry_delay: Backoff multiplier in seconds.
        backoff_factor: Exponential base for the wait between attempts.
        retry_exceptions: Exception types worth another attempt.

    The last exception is re-raised once attempts run out.
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
