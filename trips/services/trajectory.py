"""
Trajectory assembly.

Stitches a trip's departure and arrival waypoints to the recorded position
pings in between. Assembly never fails because of the position feed: when
pings are missing or the feed is down, the trajectory degrades to the
straight line between the known endpoints (or a lone departure marker) and
is flagged approximate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import get_position_fetch_limit
from core.date_utils import get_current_utc_time
from core.exceptions import SourceUnavailable
from trips.models import Trajectory

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from trips.models import TimestampedPosition, TripBoundary
    from trips.services.position_source import PositionSource

logger = logging.getLogger(__name__)


def assemble_trajectory(
    boundary: TripBoundary,
    positions: Sequence[TimestampedPosition],
) -> Trajectory:
    """
    Merge boundary waypoints with position pings into one ordered path.

    Pings are sorted by ``recorded_at``; the sort is stable so equal
    timestamps keep their fetch order, and duplicates are kept.
    """
    ordered = sorted(positions, key=lambda p: p.recorded_at)

    path = [boundary.departure_point]
    path.extend(p.point for p in ordered)
    if boundary.arrival_point is not None:
        path.append(boundary.arrival_point)

    return Trajectory(
        trip_id=boundary.trip_id,
        path=tuple(path),
        is_approximate=not ordered,
    )


class TrajectoryAssembler:
    """Fetches pings for a trip's window and assembles its trajectory."""

    def __init__(
        self,
        source: PositionSource,
        *,
        limit: int | None = None,
        clock: Callable[[], datetime] = get_current_utc_time,
    ) -> None:
        self.source = source
        self.limit = limit or get_position_fetch_limit()
        self.clock = clock

    def window_for(self, boundary: TripBoundary) -> tuple[datetime, datetime] | None:
        """Departure to arrival; ongoing trips run up to now."""
        if boundary.departure_at is None:
            return None
        window_end = boundary.arrival_at or self.clock()
        return boundary.departure_at, max(boundary.departure_at, window_end)

    async def build(self, boundary: TripBoundary) -> Trajectory:
        window = self.window_for(boundary)
        if boundary.vehicle_id is None or window is None:
            logger.warning(
                "Trip %s has no vehicle or departure time; "
                "drawing approximate trajectory",
                boundary.trip_id,
            )
            return assemble_trajectory(boundary, [])

        window_start, window_end = window
        try:
            positions = await self.source.fetch_positions(
                boundary.vehicle_id,
                window_start,
                window_end,
                self.limit,
            )
        except SourceUnavailable as e:
            logger.warning(
                "Trip %s: %s; drawing approximate trajectory",
                boundary.trip_id,
                e.message,
            )
            positions = []

        trajectory = assemble_trajectory(boundary, positions)
        logger.debug(
            "Trip %s assembled with %d vertices (approximate=%s)",
            boundary.trip_id,
            len(trajectory.path),
            trajectory.is_approximate,
        )
        return trajectory
