from unittest.mock import AsyncMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.exceptions import ExternalServiceException, ResourceNotFoundException
from trips.api.playback import router as playback_router
from trips.services.geocoding import GeocodeCache, PlaceNameResolver
from trips.services.playback import TripPlaybackOrchestrator
from trips.services.trajectory import TrajectoryAssembler
from tests.trip_fakes import FakeGeocoder, FakePositionSource, ping

TRIP = {
    "tripId": 42,
    "vehicleId": 7,
    "departurePoint": [11.50, 3.85],
    "departureDateTime": "2024-01-15T08:00:00Z",
    "arrivalPoint": [11.52, 3.87],
    "arrivalDateTime": "2024-01-15T08:30:00Z",
}


def _create_app() -> FastAPI:
    app = FastAPI()
    app.include_router(playback_router)
    return app


def _orchestrator(client: AsyncMock) -> TripPlaybackOrchestrator:
    return TripPlaybackOrchestrator(
        TrajectoryAssembler(
            FakePositionSource({7: [ping(11.51, 3.86, 10)]}),
            limit=100,
        ),
        PlaceNameResolver(
            client=FakeGeocoder({"address": {"road": "Rue Joseph Essono Balla"}}),
            cache=GeocodeCache(),
        ),
        client=client,
    )


def test_get_trip_playback_returns_ready_payload() -> None:
    client = AsyncMock()
    client.get_trip.return_value = TRIP

    with patch(
        "trips.api.playback.build_orchestrator",
        return_value=_orchestrator(client),
    ):
        response = TestClient(_create_app()).get("/api/trips/42/playback")

    assert response.status_code == 200
    body = response.json()
    assert body["tripId"] == 42
    assert body["status"] == "ready"
    assert body["path"] == [[11.50, 3.85], [11.51, 3.86], [11.52, 3.87]]
    assert body["isApproximate"] is False
    assert body["departureLabel"] == "Rue Joseph Essono Balla"
    assert body["ongoing"] is False
    assert body["durationMinutes"] == 30.0


def test_get_trip_playback_without_spatial_data() -> None:
    client = AsyncMock()
    client.get_trip.return_value = {"tripId": 42, "vehicleId": 7}

    with patch(
        "trips.api.playback.build_orchestrator",
        return_value=_orchestrator(client),
    ):
        response = TestClient(_create_app()).get("/api/trips/42/playback")

    assert response.status_code == 200
    assert response.json()["status"] == "no_spatial_data"


def test_get_trip_playback_missing_trip_is_404() -> None:
    client = AsyncMock()
    client.get_trip.side_effect = ResourceNotFoundException("Trip 42 not found")

    with patch(
        "trips.api.playback.build_orchestrator",
        return_value=_orchestrator(client),
    ):
        response = TestClient(_create_app()).get("/api/trips/42/playback")

    assert response.status_code == 404
    assert response.json()["detail"] == "Trip 42 not found"


def test_get_trip_playback_backend_failure_is_502() -> None:
    client = AsyncMock()
    client.get_trip.side_effect = ExternalServiceException("Fleet trip error: 503")

    with patch(
        "trips.api.playback.build_orchestrator",
        return_value=_orchestrator(client),
    ):
        response = TestClient(_create_app()).get("/api/trips/42/playback")

    assert response.status_code == 502
    assert response.json()["detail"] == "External service error: Fleet trip error: 503"


def test_health_endpoint() -> None:
    from app import app

    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
