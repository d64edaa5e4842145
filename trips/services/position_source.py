"""Recorded position pings for a vehicle over a time window."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import aiohttp

from core.clients.fleet import FleetApiClient
from core.exceptions import (
    ExternalServiceException,
    SourceUnavailable,
    ValidationException,
)
from core.http.circuit_breaker import CircuitOpen
from trips.serializers import parse_position

if TYPE_CHECKING:
    from datetime import datetime

    from trips.models import TimestampedPosition

logger = logging.getLogger(__name__)


class PositionSource:
    """
    Fetches recorded positions from the fleet backend.

    The returned order is whatever the backend stored; consumers sort. An
    empty list is a successful answer meaning no pings were recorded in the
    window. Failures raise ``SourceUnavailable``.
    """

    def __init__(self, client: FleetApiClient | None = None) -> None:
        self.client = client or FleetApiClient()

    async def fetch_positions(
        self,
        vehicle_id: int | str,
        window_start: datetime,
        window_end: datetime,
        limit: int,
    ) -> list[TimestampedPosition]:
        if window_start > window_end:
            msg = "Position window starts after it ends"
            raise ValidationException(
                msg,
                {"window_start": window_start, "window_end": window_end},
            )
        if limit <= 0:
            msg = "Position limit must be positive"
            raise ValidationException(msg, {"limit": limit})

        try:
            records = await self.client.get_vehicle_positions(
                vehicle_id,
                start=window_start,
                end=window_end,
                limit=limit,
            )
        except (
            ExternalServiceException,
            CircuitOpen,
            aiohttp.ClientError,
            asyncio.TimeoutError,
        ) as e:
            msg = f"Position feed unavailable for vehicle {vehicle_id}"
            raise SourceUnavailable(msg, {"vehicle_id": vehicle_id}) from e

        positions = []
        skipped = 0
        for record in records[:limit]:
            position = parse_position(record)
            if position is None:
                skipped += 1
                continue
            positions.append(position)

        if skipped:
            logger.warning(
                "Skipped %d malformed position records for vehicle %s",
                skipped,
                vehicle_id,
            )
        logger.debug(
            "Fetched %d positions for vehicle %s (%s - %s)",
            len(positions),
            vehicle_id,
            window_start,
            window_end,
        )
        return positions
