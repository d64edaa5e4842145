"""
Trip playback orchestration.

Drives one playback session through Idle -> Loading -> Ready. Every
selection takes a fresh token; a result is published only if its token is
still the current one when it arrives, so the last selection wins and
nothing mutates state after ``close()``. In-flight requests are never
cancelled, only ignored.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from core.clients.fleet import FleetApiClient
from core.constants import (
    NO_SPATIAL_DATA_MESSAGE,
    ONGOING_TRIP_LABEL,
    UNKNOWN_PLACE_LABEL,
)
from core.exceptions import MalformedTripBoundary
from trips.models import NoSpatialData, PlaybackView
from trips.serializers import parse_trip_boundary

if TYPE_CHECKING:
    from collections.abc import Callable

    from trips.models import TripBoundary
    from trips.services.geocoding import PlaceNameResolver
    from trips.services.trajectory import TrajectoryAssembler

logger = logging.getLogger(__name__)

PlaybackResult = PlaybackView | NoSpatialData


class PlaybackState(Enum):
    """Lifecycle of a playback session."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class PlaybackSnapshot:
    state: PlaybackState
    trip_id: int | str | None = None
    result: PlaybackResult | None = None


class TripPlaybackOrchestrator:
    """Coordinates trajectory assembly and endpoint labels for one session."""

    def __init__(
        self,
        assembler: TrajectoryAssembler,
        resolver: PlaceNameResolver,
        *,
        client: FleetApiClient | None = None,
        on_change: Callable[[PlaybackSnapshot], None] | None = None,
    ) -> None:
        self.assembler = assembler
        self.resolver = resolver
        self.client = client
        self.on_change = on_change
        self._token = 0
        self._snapshot = PlaybackSnapshot(state=PlaybackState.IDLE)

    @property
    def snapshot(self) -> PlaybackSnapshot:
        return self._snapshot

    @property
    def state(self) -> PlaybackState:
        return self._snapshot.state

    @property
    def result(self) -> PlaybackResult | None:
        return self._snapshot.result

    def _publish(self, snapshot: PlaybackSnapshot) -> None:
        self._snapshot = snapshot
        if self.on_change is not None:
            self.on_change(snapshot)

    def _begin(self, trip_id: int | str | None) -> int:
        self._token += 1
        self._publish(PlaybackSnapshot(state=PlaybackState.LOADING, trip_id=trip_id))
        return self._token

    def _finish(
        self,
        token: int,
        trip_id: int | str | None,
        result: PlaybackResult,
    ) -> PlaybackResult | None:
        if token != self._token:
            logger.debug("Discarding stale playback result for trip %s", trip_id)
            return None
        self._publish(
            PlaybackSnapshot(state=PlaybackState.READY, trip_id=trip_id, result=result)
        )
        return result

    def close(self) -> None:
        """Return to Idle; results still in flight will be dropped."""
        self._token += 1
        self._publish(PlaybackSnapshot(state=PlaybackState.IDLE))

    async def select_trip(self, boundary: TripBoundary) -> PlaybackResult | None:
        """
        Load playback for ``boundary``.

        Returns the published result, or None if another selection or a
        close happened while this one was loading.
        """
        token = self._begin(boundary.trip_id)
        view = await self._load(boundary)
        return self._finish(token, boundary.trip_id, view)

    async def select_trip_record(
        self,
        record: dict[str, Any],
    ) -> PlaybackResult | None:
        """Select a trip from a raw backend record."""
        trip_id = (
            record.get("tripId", record.get("id")) if isinstance(record, dict) else None
        )
        token = self._begin(trip_id)
        result = await self._load_record(record, trip_id)
        return self._finish(token, trip_id, result)

    async def select_trip_id(self, trip_id: int | str) -> PlaybackResult | None:
        """
        Fetch the trip record from the backend, then select it.

        Backend failures while fetching the record propagate after the
        session is returned to Idle.
        """
        token = self._begin(trip_id)
        client = self.client or FleetApiClient()
        try:
            record = await client.get_trip(trip_id)
        except Exception:
            if token == self._token:
                self._publish(PlaybackSnapshot(state=PlaybackState.IDLE))
            raise
        if token != self._token:
            logger.debug("Discarding stale trip record for trip %s", trip_id)
            return None
        result = await self._load_record(record, trip_id)
        return self._finish(token, trip_id, result)

    async def _load_record(
        self,
        record: Any,
        trip_id: int | str | None,
    ) -> PlaybackResult:
        try:
            boundary = parse_trip_boundary(record, trip_id=trip_id)
        except MalformedTripBoundary as e:
            logger.info("Trip %s has no spatial data: %s", trip_id, e.message)
            return NoSpatialData(
                trip_id=trip_id if trip_id is not None else "unknown",
                message=NO_SPATIAL_DATA_MESSAGE,
            )
        return await self._load(boundary)

    async def _load(self, boundary: TripBoundary) -> PlaybackView:
        arrival_label: Any
        if boundary.arrival_point is not None:
            arrival_label = self.resolver.resolve_place_name(boundary.arrival_point)
        elif boundary.is_ongoing:
            arrival_label = _constant(ONGOING_TRIP_LABEL)
        else:
            arrival_label = _constant(UNKNOWN_PLACE_LABEL)

        trajectory, departure, arrival = await asyncio.gather(
            self.assembler.build(boundary),
            self.resolver.resolve_place_name(boundary.departure_point),
            arrival_label,
        )
        return PlaybackView(
            boundary=boundary,
            trajectory=trajectory,
            departure_label=departure,
            arrival_label=arrival,
        )


async def _constant(value: str) -> str:
    return value
