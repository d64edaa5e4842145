"""Pydantic models for trip playback."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.spatial import GeometryService


class GeoPoint(BaseModel):
    """Immutable WGS84 coordinate."""

    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_lon_lat(cls, pair: list[float] | tuple[float, float]) -> GeoPoint:
        return cls(longitude=pair[0], latitude=pair[1])

    def as_lon_lat(self) -> list[float]:
        return [self.longitude, self.latitude]


class TimestampedPosition(BaseModel):
    """A single recorded position ping from the backend feed."""

    point: GeoPoint
    recorded_at: datetime

    model_config = ConfigDict(frozen=True)


class TripBoundary(BaseModel):
    """
    Authoritative start/end record of a trip.

    ``arrival_at`` being None is the one canonical signal that the trip is
    still in progress. ``arrival_point`` may be known before ``arrival_at``
    and is appended to the path whenever present. Without ``departure_at``
    there is no time window, so only the endpoints can be drawn.
    """

    trip_id: int | str
    vehicle_id: int | str | None = None
    departure_point: GeoPoint
    departure_at: datetime | None = None
    arrival_point: GeoPoint | None = None
    arrival_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_ongoing(self) -> bool:
        return self.arrival_at is None

    def duration_minutes(self, now: datetime) -> float | None:
        """Elapsed minutes; ongoing trips are measured up to ``now``."""
        if self.departure_at is None:
            return None
        end = self.arrival_at or now
        return max(0.0, (end - self.departure_at).total_seconds() / 60.0)


class Trajectory(BaseModel):
    """
    Assembled, renderable path for one trip's playback.

    ``is_approximate`` marks the straight-line (or single point) fallback used
    when no position pings were available; renderers draw it differently.
    """

    trip_id: int | str
    path: tuple[GeoPoint, ...] = Field(min_length=1)
    is_approximate: bool

    model_config = ConfigDict(frozen=True)

    def coordinates(self) -> list[list[float]]:
        return [p.as_lon_lat() for p in self.path]

    @property
    def distance_km(self) -> float:
        return GeometryService.path_length(self.coordinates(), unit="km")

    @property
    def center(self) -> GeoPoint:
        center = GeometryService.bounding_box_center(self.coordinates())
        return GeoPoint.from_lon_lat(center)

    def to_geojson(self) -> dict[str, Any]:
        coords = self.coordinates()
        if len(coords) == 1:
            return {"type": "Point", "coordinates": coords[0]}
        return {"type": "LineString", "coordinates": coords}


class PlaybackView(BaseModel):
    """Everything the map surface needs to draw one trip."""

    boundary: TripBoundary
    trajectory: Trajectory
    departure_label: str
    arrival_label: str

    model_config = ConfigDict(frozen=True)


class NoSpatialData(BaseModel):
    """Playback result for a trip that carries no usable coordinates."""

    trip_id: int | str
    message: str

    model_config = ConfigDict(frozen=True)
