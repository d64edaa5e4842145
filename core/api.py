"""Error handling for the FastAPI routes."""

import functools
import logging
from collections.abc import Callable

from fastapi import HTTPException, status

from core.exceptions import (
    ExternalServiceException,
    FleetPlaybackException,
    RateLimitException,
    ResourceNotFoundException,
    ValidationException,
)

# Checked in order, so subclasses come before their bases.
_ERROR_STATUS: tuple[tuple[type[FleetPlaybackException], int, int], ...] = (
    (ValidationException, status.HTTP_400_BAD_REQUEST, logging.WARNING),
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND, logging.INFO),
    (RateLimitException, status.HTTP_429_TOO_MANY_REQUESTS, logging.WARNING),
    (ExternalServiceException, status.HTTP_502_BAD_GATEWAY, logging.ERROR),
)


def _status_for(exc: FleetPlaybackException) -> tuple[int, int]:
    for exc_type, status_code, level in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code, level
    return status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR


def api_route(logger: logging.Logger):
    """
    Decorator for FastAPI endpoints that maps application errors to HTTP.

    ``HTTPException`` passes through untouched. Application exceptions
    become 400/404/429/502 (500 for anything else in the hierarchy), with
    upstream failures prefixed ``"External service error: "``. Anything
    unexpected is logged with its traceback and returned as a 500.

    Usage:
        @router.get("/api/trips/{trip_id}/playback")
        @api_route(logger)
        async def get_trip_playback(trip_id: str):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except FleetPlaybackException as e:
                status_code, level = _status_for(e)
                logger.log(
                    level,
                    "%s in %s: %s",
                    type(e).__name__,
                    func.__name__,
                    e.message,
                    exc_info=level >= logging.ERROR,
                )
                detail = e.message
                if isinstance(e, ExternalServiceException) and not isinstance(
                    e, RateLimitException
                ):
                    detail = f"External service error: {e.message}"
                raise HTTPException(status_code=status_code, detail=detail) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=str(e),
                ) from e

        return wrapper

    return decorator
