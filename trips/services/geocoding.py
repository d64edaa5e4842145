"""
Place names for trip endpoints.

Reverse geocoding goes through a process-wide cache keyed by the quantized
coordinate, so every distinct place costs at most one Nominatim request per
process. Concurrent requests for the same key share one in-flight lookup.
Lookups never raise: a failed lookup resolves to the coordinates formatted
as text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Final

from core.constants import (
    COORDINATE_LABEL_PRECISION,
    GEOCODE_KEY_PRECISION,
    UNKNOWN_PLACE_LABEL,
)
from core.exceptions import GeocodeUnavailable
from core.http.nominatim import NominatimClient

if TYPE_CHECKING:
    from trips.models import GeoPoint

logger = logging.getLogger(__name__)


class _Unresolved:
    """Cache marker for a coordinate whose lookup failed."""

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED: Final = _Unresolved()

CacheValue = str | _Unresolved

# Address fields in label priority order; suburb and neighbourhood rank
# together as the neighborhood level.
_LABEL_PRIORITY: Final[tuple[str, ...]] = (
    "road",
    "suburb",
    "neighbourhood",
    "city",
    "town",
    "village",
    "county",
)


def quantize_key(point: GeoPoint, precision: int = GEOCODE_KEY_PRECISION) -> str:
    """Cache key ``"lat,lon"`` rounded to ``precision`` decimals."""
    # + 0.0 folds -0.0 into 0.0 so both sides of the equator share a key
    lat = round(point.latitude, precision) + 0.0
    lon = round(point.longitude, precision) + 0.0
    return f"{lat:.{precision}f},{lon:.{precision}f}"


def format_coordinate_label(
    point: GeoPoint,
    precision: int = COORDINATE_LABEL_PRECISION,
) -> str:
    return f"{point.latitude:.{precision}f}, {point.longitude:.{precision}f}"


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def select_place_label(payload: Any) -> str:
    """
    Pick a short human-readable label from a Nominatim reverse payload.

    Priority is road, neighborhood, city or town, village, county. A road
    with a known city or town is labelled ``"road, city"``. Without an
    address breakdown the first segment of ``display_name`` is used.

    Raises:
        GeocodeUnavailable: the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        msg = "Malformed reverse geocoding response"
        raise GeocodeUnavailable(msg, {"type": type(payload).__name__})

    address = payload.get("address")
    if isinstance(address, dict) and address:
        fields = {name: _text(address.get(name)) for name in _LABEL_PRIORITY}
        label = next((fields[name] for name in _LABEL_PRIORITY if fields[name]), "")
        if not label:
            return UNKNOWN_PLACE_LABEL
        city = fields["city"] or fields["town"]
        if fields["road"] and city:
            return f"{fields['road']}, {city}"
        return label

    display_name = _text(payload.get("display_name"))
    if display_name:
        first = display_name.split(",")[0].strip()
        if first:
            return first
    return UNKNOWN_PLACE_LABEL


class GeocodeCache:
    """
    Session-lifetime store of resolved place names.

    Entries are never evicted; the key space is bounded by the distinct
    places the fleet visits. ``pending`` maps keys to the lookup currently
    in flight for them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheValue] = {}
        self.pending: dict[str, asyncio.Task[CacheValue]] = {}
        self.hits = 0
        self.misses = 0
        self.lookups = 0

    def get(self, key: str) -> CacheValue | None:
        return self._entries.get(key)

    def set(self, key: str, value: CacheValue) -> None:
        self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "lookups": self.lookups,
            "pending": len(self.pending),
        }

    def clear(self) -> None:
        """Drop everything. Only meant for tests."""
        self._entries.clear()
        self.pending.clear()
        self.hits = 0
        self.misses = 0
        self.lookups = 0


geocode_cache = GeocodeCache()


class PlaceNameResolver:
    """Resolves points to place names through the shared cache."""

    def __init__(
        self,
        client: NominatimClient | None = None,
        cache: GeocodeCache | None = None,
    ) -> None:
        self.client = client or NominatimClient()
        self.cache = cache if cache is not None else geocode_cache

    async def resolve_place_name(self, point: GeoPoint) -> str:
        key = quantize_key(point)

        cached = self.cache.get(key)
        if cached is not None:
            self.cache.hits += 1
            return self._label(cached, point)

        task = self.cache.pending.get(key)
        if task is None:
            self.cache.misses += 1
            task = asyncio.create_task(self._lookup(key, point))
            self.cache.pending[key] = task
            task.add_done_callback(lambda _t: self.cache.pending.pop(key, None))
        else:
            logger.debug("Joining in-flight geocode lookup for %s", key)

        # shield: a caller that goes away must not cancel the shared lookup
        value = await asyncio.shield(task)
        return self._label(value, point)

    async def _lookup(self, key: str, point: GeoPoint) -> CacheValue:
        self.cache.lookups += 1
        value: CacheValue
        try:
            payload = await self.client.reverse(point.latitude, point.longitude)
            if payload is None or (isinstance(payload, dict) and payload.get("error")):
                value = UNKNOWN_PLACE_LABEL
            else:
                value = select_place_label(payload)
        except Exception as e:
            logger.warning("Reverse geocoding failed for %s: %s", key, e)
            value = UNRESOLVED
        self.cache.set(key, value)
        return value

    @staticmethod
    def _label(value: CacheValue, point: GeoPoint) -> str:
        if isinstance(value, _Unresolved):
            return format_coordinate_label(point)
        return value
