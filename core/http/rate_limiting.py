"""
Rate limiting utilities for external API calls.
"""

from aiolimiter import AsyncLimiter

from core.constants import NOMINATIM_MAX_RATE, NOMINATIM_TIME_PERIOD

# Public Nominatim allows an absolute maximum of 1 request per second
nominatim_rate_limiter = AsyncLimiter(NOMINATIM_MAX_RATE, NOMINATIM_TIME_PERIOD)
