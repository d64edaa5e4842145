"""API routes for trip playback."""

import logging

from fastapi import APIRouter

from core.api import api_route
from core.clients.fleet import FleetApiClient
from core.date_utils import get_current_utc_time
from trips.serializers import serialize_playback
from trips.services.geocoding import PlaceNameResolver
from trips.services.playback import TripPlaybackOrchestrator
from trips.services.position_source import PositionSource
from trips.services.trajectory import TrajectoryAssembler

logger = logging.getLogger(__name__)
router = APIRouter()


def build_orchestrator() -> TripPlaybackOrchestrator:
    """One orchestrator per request; the geocode cache stays process-wide."""
    client = FleetApiClient()
    return TripPlaybackOrchestrator(
        TrajectoryAssembler(PositionSource(client)),
        PlaceNameResolver(),
        client=client,
    )


@router.get("/api/trips/{trip_id}/playback", response_model=dict[str, object])
@api_route(logger)
async def get_trip_playback(trip_id: str):
    """Path, approximation flag and endpoint labels for one trip."""
    orchestrator = build_orchestrator()
    result = await orchestrator.select_trip_id(trip_id)
    return serialize_playback(result, now=get_current_utc_time())
