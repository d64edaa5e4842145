"""Wire-format parsing and rendering payloads for trip playback."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from core.date_utils import parse_timestamp
from core.exceptions import MalformedTripBoundary
from core.spatial import GeometryService
from trips.models import (
    GeoPoint,
    NoSpatialData,
    PlaybackView,
    TimestampedPosition,
    TripBoundary,
)

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


def parse_point(value: Any) -> GeoPoint | None:
    """Parse ``[lon, lat]`` or a GeoJSON Point; None if unusable."""
    pair = GeometryService.extract_point(value)
    if pair is None:
        return None
    return GeoPoint.from_lon_lat(pair)


def parse_position(payload: Any) -> TimestampedPosition | None:
    """
    Parse one position-feed record.

    Accepts ``recordedAt`` or the backend's ``positionDateTime`` for the
    timestamp. Returns None when the coordinate or timestamp is unusable.
    """
    if not isinstance(payload, dict):
        return None
    point = parse_point(payload.get("coordinate"))
    recorded_at = parse_timestamp(
        payload.get("recordedAt", payload.get("positionDateTime"))
    )
    if point is None or recorded_at is None:
        return None
    return TimestampedPosition(point=point, recorded_at=recorded_at)


def parse_trip_boundary(
    payload: Any,
    *,
    trip_id: int | str | None = None,
) -> TripBoundary:
    """
    Build a TripBoundary from a backend trip record.

    ``trip_id`` is used when the record carries no id of its own. A record
    without a usable departure time is kept; it only loses its ping window.

    Raises:
        MalformedTripBoundary: the record has no usable departure point, or
            its fields cannot form a trip boundary at all.
    """
    if not isinstance(payload, dict):
        msg = "Trip record is not an object"
        raise MalformedTripBoundary(msg, {"type": type(payload).__name__})

    record_id = payload.get("tripId", payload.get("id"))
    if record_id is not None:
        trip_id = record_id
    departure_point = parse_point(payload.get("departurePoint"))
    arrival_point = parse_point(payload.get("arrivalPoint"))
    departure_at = parse_timestamp(payload.get("departureDateTime"))
    arrival_at = parse_timestamp(payload.get("arrivalDateTime"))

    if departure_point is None:
        msg = f"Trip {trip_id} has no usable departure point"
        raise MalformedTripBoundary(
            msg,
            {"trip_id": trip_id, "has_arrival_point": arrival_point is not None},
        )
    if departure_at is None:
        logger.warning("Trip %s has no usable departure time", trip_id)
    elif arrival_at is not None and arrival_at < departure_at:
        logger.warning(
            "Trip %s arrives (%s) before it departs (%s)",
            trip_id,
            arrival_at,
            departure_at,
        )

    try:
        return TripBoundary(
            trip_id=trip_id,
            vehicle_id=payload.get("vehicleId"),
            departure_point=departure_point,
            departure_at=departure_at,
            arrival_point=arrival_point,
            arrival_at=arrival_at,
        )
    except ValidationError as e:
        msg = f"Trip {trip_id} record is malformed"
        raise MalformedTripBoundary(
            msg,
            {"trip_id": trip_id, "errors": e.errors(include_url=False)},
        ) from e


def serialize_playback(
    result: PlaybackView | NoSpatialData,
    *,
    now: datetime,
) -> dict[str, Any]:
    """Render a playback result as the camelCase payload the map widget reads."""
    if isinstance(result, NoSpatialData):
        return {
            "tripId": result.trip_id,
            "status": "no_spatial_data",
            "message": result.message,
        }

    trajectory = result.trajectory
    boundary = result.boundary
    duration = boundary.duration_minutes(now)
    return {
        "tripId": trajectory.trip_id,
        "status": "ready",
        "path": trajectory.coordinates(),
        "isApproximate": trajectory.is_approximate,
        "departureLabel": result.departure_label,
        "arrivalLabel": result.arrival_label,
        "center": trajectory.center.as_lon_lat(),
        "distanceKm": round(trajectory.distance_km, 3),
        "durationMinutes": round(duration, 1) if duration is not None else None,
        "ongoing": boundary.is_ongoing,
    }
