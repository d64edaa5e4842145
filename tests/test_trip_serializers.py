from datetime import UTC, datetime

import pytest

from core.exceptions import MalformedTripBoundary
from trips.models import NoSpatialData, PlaybackView, Trajectory
from trips.serializers import (
    parse_point,
    parse_position,
    parse_trip_boundary,
    serialize_playback,
)
from tests.trip_fakes import T0, at, boundary, point


def test_parse_point_accepts_pair_and_geojson() -> None:
    assert parse_point([11.5, 3.85]) == point(11.5, 3.85)
    assert parse_point({"type": "Point", "coordinates": [11.5, 3.85]}) == point(
        11.5, 3.85
    )
    assert parse_point(None) is None
    assert parse_point([181.0, 0.0]) is None


def test_parse_position_reads_recorded_at_variants() -> None:
    first = parse_position(
        {"coordinate": [11.5, 3.85], "recordedAt": "2024-01-15T08:10:00Z"}
    )
    second = parse_position(
        {"coordinate": [11.5, 3.85], "positionDateTime": [2024, 1, 15, 8, 10]}
    )

    assert first is not None
    assert second is not None
    assert first.recorded_at == second.recorded_at == at(10)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "ping",
        {"coordinate": [11.5, 3.85]},
        {"coordinate": None, "recordedAt": "2024-01-15T08:10:00Z"},
        {"coordinate": ["a", "b"], "recordedAt": "2024-01-15T08:10:00Z"},
        {"coordinate": [11.5, 3.85], "recordedAt": "yesterday"},
    ],
)
def test_parse_position_returns_none_for_unusable_records(payload) -> None:
    assert parse_position(payload) is None


def test_parse_trip_boundary_reads_backend_record() -> None:
    record = {
        "tripId": 42,
        "vehicleId": 7,
        "departurePoint": [11.50, 3.85],
        "departureDateTime": "2024-01-15T08:00:00",
        "arrivalPoint": {"type": "Point", "coordinates": [11.52, 3.87]},
        "arrivalDateTime": [2024, 1, 15, 8, 30],
    }

    parsed = parse_trip_boundary(record)

    assert parsed.trip_id == 42
    assert parsed.vehicle_id == 7
    assert parsed.departure_point == point(11.50, 3.85)
    assert parsed.departure_at == T0
    assert parsed.arrival_point == point(11.52, 3.87)
    assert parsed.arrival_at == at(30)
    assert not parsed.is_ongoing


def test_parse_trip_boundary_ongoing_trip() -> None:
    parsed = parse_trip_boundary(
        {
            "id": "t-1",
            "departurePoint": [11.50, 3.85],
            "departureDateTime": "2024-01-15T08:00:00Z",
        }
    )

    assert parsed.trip_id == "t-1"
    assert parsed.arrival_point is None
    assert parsed.is_ongoing


@pytest.mark.parametrize(
    "record",
    [
        ["not", "a", "dict"],
        {"tripId": 1, "departureDateTime": "2024-01-15T08:00:00Z"},
        {
            "tripId": 1,
            "arrivalPoint": [11.52, 3.87],
            "departureDateTime": "2024-01-15T08:00:00Z",
        },
        {"departurePoint": [11.50, 3.85], "departureDateTime": "2024-01-15T08:00:00Z"},
        {
            "tripId": 1,
            "vehicleId": [7],
            "departurePoint": [11.50, 3.85],
            "departureDateTime": "2024-01-15T08:00:00Z",
        },
    ],
)
def test_parse_trip_boundary_rejects_unusable_records(record) -> None:
    with pytest.raises(MalformedTripBoundary):
        parse_trip_boundary(record)


def test_serialize_playback_ready_payload() -> None:
    trip = boundary(42)
    view = PlaybackView(
        boundary=trip,
        trajectory=Trajectory(
            trip_id=42,
            path=(trip.departure_point, point(11.51, 3.86), trip.arrival_point),
            is_approximate=False,
        ),
        departure_label="Avenue Kennedy, Yaoundé",
        arrival_label="Bastos",
    )

    payload = serialize_playback(view, now=at(60))

    assert payload["tripId"] == 42
    assert payload["status"] == "ready"
    assert payload["path"] == [[11.50, 3.85], [11.51, 3.86], [11.52, 3.87]]
    assert payload["isApproximate"] is False
    assert payload["departureLabel"] == "Avenue Kennedy, Yaoundé"
    assert payload["arrivalLabel"] == "Bastos"
    assert payload["center"] == pytest.approx([11.51, 3.86])
    assert payload["distanceKm"] > 0
    assert payload["durationMinutes"] == 30.0
    assert payload["ongoing"] is False


def test_serialize_playback_ongoing_duration_uses_now() -> None:
    trip = boundary(5, arrival=None, arrival_minutes=None)
    view = PlaybackView(
        boundary=trip,
        trajectory=Trajectory(
            trip_id=5,
            path=(trip.departure_point,),
            is_approximate=True,
        ),
        departure_label="Bastos",
        arrival_label="Trip in progress",
    )

    payload = serialize_playback(view, now=datetime(2024, 1, 15, 8, 45, tzinfo=UTC))

    assert payload["ongoing"] is True
    assert payload["durationMinutes"] == 45.0
    assert payload["distanceKm"] == 0.0
    assert payload["path"] == [[11.50, 3.85]]


def test_serialize_playback_no_spatial_data() -> None:
    payload = serialize_playback(
        NoSpatialData(trip_id=9, message="No spatial data is available for this trip."),
        now=T0,
    )

    assert payload == {
        "tripId": 9,
        "status": "no_spatial_data",
        "message": "No spatial data is available for this trip.",
    }


def test_parse_trip_boundary_keeps_record_without_departure_time() -> None:
    parsed = parse_trip_boundary(
        {
            "tripId": 3,
            "departurePoint": [11.50, 3.85],
            "departureDateTime": "not a date",
            "arrivalPoint": [11.52, 3.86],
            "arrivalDateTime": "2024-01-15T08:30:00Z",
        }
    )

    assert parsed.departure_at is None
    assert parsed.arrival_point == point(11.52, 3.86)
    assert parsed.duration_minutes(at(60)) is None


def test_parse_trip_boundary_falls_back_to_requested_id() -> None:
    record = {
        "departurePoint": [11.50, 3.85],
        "departureDateTime": "2024-01-15T08:00:00Z",
    }

    assert parse_trip_boundary(record, trip_id="42").trip_id == "42"
    assert parse_trip_boundary({**record, "tripId": 7}, trip_id="42").trip_id == 7


def test_serialize_playback_without_departure_time_has_no_duration() -> None:
    trip = parse_trip_boundary(
        {
            "tripId": 3,
            "departurePoint": [11.50, 3.85],
            "arrivalPoint": [11.52, 3.86],
            "arrivalDateTime": "2024-01-15T08:30:00Z",
        }
    )
    view = PlaybackView(
        boundary=trip,
        trajectory=Trajectory(
            trip_id=3,
            path=(trip.departure_point, trip.arrival_point),
            is_approximate=True,
        ),
        departure_label="Bastos",
        arrival_label="Mvog-Ada",
    )

    payload = serialize_playback(view, now=at(60))

    assert payload["durationMinutes"] is None
    assert payload["isApproximate"] is True
