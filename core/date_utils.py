"""
Centralized date and time utilities for the application.

All timestamps are handled as timezone-aware datetime objects, defaulting to
UTC. The fleet backend serializes ``LocalDateTime`` values either as ISO 8601
strings or as component arrays (``[2024, 1, 15, 14, 30]``); both forms are
accepted by :func:`parse_timestamp`.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from dateutil import parser

logger = logging.getLogger(__name__)


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def _from_components(parts: list[Any] | tuple[Any, ...]) -> datetime | None:
    """Build a UTC datetime from ``[year, month, day, hour, minute, second, nanos]``."""
    if len(parts) < 3:
        logger.warning("Timestamp array too short: %s", parts)
        return None
    try:
        values = [int(p) for p in parts[:7]]
    except (TypeError, ValueError):
        logger.warning("Non-numeric timestamp array: %s", parts)
        return None
    year, month, day = values[:3]
    hour = values[3] if len(values) > 3 else 0
    minute = values[4] if len(values) > 4 else 0
    second = values[5] if len(values) > 5 else 0
    microsecond = values[6] // 1000 if len(values) > 6 else 0
    try:
        return datetime(
            year, month, day, hour, minute, second, microsecond, tzinfo=UTC
        )
    except ValueError as e:
        logger.warning("Invalid timestamp array %s: %s", parts, e)
        return None


def parse_timestamp(ts: Any) -> datetime | None:
    """
    Parse a timestamp and ensure it is timezone-aware, defaulting to UTC.

    Args:
        ts: An ISO 8601 string, a datetime, or a Spring-style component array.

    Returns:
        A timezone-aware datetime object, or None if parsing fails.
    """
    if ts is None or ts == "" or ts == []:
        logger.debug("Received empty timestamp; returning None.")
        return None

    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC)
        return ts

    if isinstance(ts, (list, tuple)):
        return _from_components(ts)

    if not isinstance(ts, str):
        logger.warning("Unsupported timestamp type '%s'", type(ts).__name__)
        return None

    try:
        parsed_time = parser.isoparse(ts)
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None
    if parsed_time.tzinfo is None:
        return parsed_time.replace(tzinfo=UTC)
    return parsed_time


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return the datetime as an explicit UTC-aware value."""

    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def format_api_datetime_param(dt: datetime) -> str:
    """
    Format datetimes for fleet backend query params.

    Uses explicit UTC with a ``Z`` suffix and second precision.
    """
    utc = ensure_utc(dt) or dt
    utc = utc.replace(microsecond=0)
    return utc.isoformat().replace("+00:00", "Z")
