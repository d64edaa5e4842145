"""Global constants for the core package.

This module contains shared constants used across the application core.
"""

from typing import Final

# HTTP Client Constants
HTTP_CONNECTION_LIMIT: Final[int] = 10
HTTP_TIMEOUT_CONNECT: Final[float] = 10.0
HTTP_TIMEOUT_SOCK_READ: Final[float] = 30.0
HTTP_TIMEOUT_TOTAL: Final[float] = 60.0

# Nominatim public usage policy: at most one request per second
NOMINATIM_MAX_RATE: Final[float] = 1.0
NOMINATIM_TIME_PERIOD: Final[float] = 1.0

# Geocode cache keys: 6 decimals ~ 0.11 m
GEOCODE_KEY_PRECISION: Final[int] = 6
# Fallback labels: 4 decimals ~ 11 m
COORDINATE_LABEL_PRECISION: Final[int] = 4
UNKNOWN_PLACE_LABEL: Final[str] = "Unknown place"

NO_SPATIAL_DATA_MESSAGE: Final[str] = "No spatial data is available for this trip."
ONGOING_TRIP_LABEL: Final[str] = "Trip in progress"
