"""
Spatial and geometry utilities.

Centralizes coordinate validation, GeoJSON parsing and distance
calculations used by trip playback.
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class GeometryService:
    """Authoritative geometry operations for the application."""

    EARTH_RADIUS_M = 6371000.0

    @staticmethod
    def validate_coordinate_pair(
        coord: Sequence[Any],
    ) -> tuple[bool, list[float] | None]:
        """Validate a [lon, lat] coordinate pair."""
        if not isinstance(coord, (list, tuple)) or len(coord) < 2:
            return False, None
        try:
            lon = float(coord[0])
            lat = float(coord[1])
        except (TypeError, ValueError, IndexError):
            return False, None
        if math.isnan(lon) or math.isnan(lat):
            return False, None
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            return False, None
        return True, [lon, lat]

    @staticmethod
    def haversine_distance(
        lon1: float,
        lat1: float,
        lon2: float,
        lat2: float,
        unit: str = "meters",
    ) -> float:
        """Calculate the great-circle distance using the Haversine formula."""
        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        dphi = math.radians(lat2 - lat1)
        dlmb = math.radians(lon2 - lon1)
        a = (
            math.sin(dphi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
        )
        distance_m = (
            2 * GeometryService.EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))
        )
        if unit == "meters":
            return distance_m
        if unit == "km":
            return distance_m / 1000.0
        msg = "Invalid unit. Use 'meters' or 'km'."
        raise ValueError(msg)

    @staticmethod
    def path_length(coords: Sequence[Sequence[float]], unit: str = "meters") -> float:
        """Sum of haversine distances between consecutive [lon, lat] pairs."""
        total = 0.0
        for prev, cur in zip(coords, coords[1:]):
            total += GeometryService.haversine_distance(
                prev[0], prev[1], cur[0], cur[1], unit=unit
            )
        return total

    @staticmethod
    def bounding_box_center(
        coords: Sequence[Sequence[float]],
    ) -> list[float] | None:
        """Return the [lon, lat] center of the bounding box of ``coords``."""
        if not coords:
            return None
        lons = [c[0] for c in coords]
        lats = [c[1] for c in coords]
        return [(min(lons) + max(lons)) / 2, (min(lats) + max(lats)) / 2]

    @staticmethod
    def parse_geojson(value: Any) -> dict[str, Any] | None:
        """Parse GeoJSON geometry from a dict or JSON string."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                return None
        if isinstance(value, dict):
            if value.get("type") == "Feature":
                geometry = value.get("geometry")
                return geometry if isinstance(geometry, dict) else None
            if "type" in value:
                return value
        return None

    @staticmethod
    def extract_point(value: Any) -> list[float] | None:
        """
        Extract a validated [lon, lat] pair from a raw coordinate.

        Accepts a bare ``[lon, lat]`` list or a GeoJSON Point (optionally
        wrapped in a Feature or serialized as a JSON string).
        """
        if isinstance(value, (list, tuple)):
            _, pair = GeometryService.validate_coordinate_pair(value)
            return pair
        geometry = GeometryService.parse_geojson(value)
        if not geometry or geometry.get("type") != "Point":
            return None
        _, pair = GeometryService.validate_coordinate_pair(
            geometry.get("coordinates") or []
        )
        return pair
