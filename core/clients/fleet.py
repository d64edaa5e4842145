"""Fleet backend REST client for trips and recorded positions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from config import get_fleet_api_base_url, get_fleet_api_timeout
from core.date_utils import format_api_datetime_param
from core.exceptions import ExternalServiceException, ResourceNotFoundException
from core.http.circuit_breaker import fleet_api_breaker, with_circuit_breaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

# Spring Data pages and other list envelopes the backend may return.
_ENVELOPE_KEYS = ("content", "data", "items", "results")


def unwrap_list_payload(payload: Any, *, service_name: str) -> list[Any]:
    """Return the list inside a bare-list or paginated-envelope response."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    msg = f"{service_name} error: unexpected response"
    raise ExternalServiceException(
        msg,
        {"type": type(payload).__name__},
    )


class FleetApiClient:
    """Client for the fleet backend trip and position endpoints."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        base_url: str | None = None,
    ) -> None:
        self._session = session
        self._base_url = (base_url or get_fleet_api_base_url()).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=get_fleet_api_timeout())

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = await get_session()
        return self._session

    async def _get(
        self,
        path: str,
        *,
        service_name: str,
        params: dict[str, Any] | None = None,
        none_on: tuple[int, ...] = (),
    ) -> Any | None:
        session = await self._get_session()
        return await request_json(
            "GET",
            f"{self._base_url}{path}",
            session=session,
            params=params,
            service_name=service_name,
            none_on=none_on,
            timeout=self._timeout,
        )

    @with_circuit_breaker(fleet_api_breaker)
    @retry_async(max_retries=2, retry_delay=0.5)
    async def get_vehicle_positions(
        self,
        vehicle_id: int | str,
        *,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> list[dict[str, Any]]:
        """Fetch raw position records for a vehicle within ``[start, end]``."""
        service_name = "Fleet positions"
        params = {
            "startDate": format_api_datetime_param(start),
            "endDate": format_api_datetime_param(end),
            "limit": limit,
        }
        payload = await self._get(
            f"/positions/vehicle/{vehicle_id}",
            service_name=service_name,
            params=params,
        )
        return unwrap_list_payload(payload, service_name=service_name)

    @with_circuit_breaker(fleet_api_breaker)
    @retry_async(max_retries=2, retry_delay=0.5)
    async def _fetch_trip(self, trip_id: int | str) -> Any | None:
        return await self._get(
            f"/trips/{trip_id}",
            service_name="Fleet trip",
            none_on=(404,),
        )

    async def get_trip(self, trip_id: int | str) -> dict[str, Any]:
        payload = await self._fetch_trip(trip_id)
        if payload is None:
            msg = f"Trip {trip_id} not found"
            raise ResourceNotFoundException(msg, {"trip_id": trip_id})
        if not isinstance(payload, dict):
            msg = "Fleet trip error: unexpected response"
            raise ExternalServiceException(msg, {"trip_id": trip_id})
        return payload

