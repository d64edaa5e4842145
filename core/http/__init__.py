"""HTTP client utilities and session management."""

from core.http.circuit_breaker import (
    CircuitBreaker,
    CircuitOpen,
    fleet_api_breaker,
    nominatim_breaker,
)
from core.http.nominatim import NominatimClient
from core.http.rate_limiting import nominatim_rate_limiter
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import cleanup_session, get_session

__all__ = [
    "CircuitBreaker",
    "CircuitOpen",
    "NominatimClient",
    "cleanup_session",
    "fleet_api_breaker",
    "get_session",
    "nominatim_breaker",
    "nominatim_rate_limiter",
    "request_json",
    "retry_async",
]
