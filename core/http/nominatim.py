"""
Nominatim HTTP client utilities.

Reverse geocoding against the public OpenStreetMap Nominatim instance.
Every outbound request passes through the shared rate limiter so the
process stays within the usage policy regardless of caller count.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from config import (
    get_geocode_language,
    get_geocode_zoom,
    get_nominatim_reverse_url,
    get_nominatim_user_agent,
)
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import nominatim_breaker, with_circuit_breaker
from core.http.rate_limiting import nominatim_rate_limiter
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session

if TYPE_CHECKING:
    from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(
        self,
        *,
        language: str | None = None,
        zoom: int | None = None,
        rate_limiter: AsyncLimiter | None = None,
    ) -> None:
        self._reverse_url = get_nominatim_reverse_url()
        self._user_agent = get_nominatim_user_agent()
        self._language = language or get_geocode_language()
        self._zoom = zoom or get_geocode_zoom()
        self._rate_limiter = rate_limiter or nominatim_rate_limiter

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Accept-Language": self._language,
        }

    @with_circuit_breaker(nominatim_breaker)
    @retry_async(max_retries=2, retry_delay=1.0)
    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int | None = None,
    ) -> dict[str, Any] | None:
        """
        Reverse geocode a coordinate.

        Returns the raw ``jsonv2`` payload, or None when Nominatim answers 404.
        Raises ``ExternalServiceException`` for other HTTP errors and for
        payloads that are not JSON objects.
        """
        params = {
            "format": "jsonv2",
            "lat": f"{lat:.7f}",
            "lon": f"{lon:.7f}",
            "zoom": zoom or self._zoom,
            "addressdetails": 1,
            "accept-language": self._language,
        }
        session = await get_session()
        async with self._rate_limiter:
            data = await request_json(
                "GET",
                self._reverse_url,
                session=session,
                params=params,
                headers=self._headers(),
                service_name="Nominatim reverse",
                none_on=(404,),
            )
        if data is None:
            return None
        if not isinstance(data, dict):
            msg = "Nominatim reverse error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._reverse_url})
        return data
