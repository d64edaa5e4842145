"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
application. Import getters from here rather than calling os.getenv directly
in multiple places. Values are read at call time so tests can patch the
environment.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

logger = logging.getLogger(__name__)


# --- Fleet backend REST API ---
DEFAULT_FLEET_API_BASE_URL: Final[str] = "http://localhost:9080/api"
DEFAULT_FLEET_API_TIMEOUT: Final[float] = 10.0

# --- Nominatim (OpenStreetMap) reverse geocoding ---
DEFAULT_NOMINATIM_BASE_URL: Final[str] = "https://nominatim.openstreetmap.org"
DEFAULT_NOMINATIM_USER_AGENT: Final[str] = "FleetPlayback/1.0"
DEFAULT_GEOCODE_LANGUAGE: Final[str] = "fr"
DEFAULT_GEOCODE_ZOOM: Final[int] = 18

# --- Trip playback ---
DEFAULT_POSITION_FETCH_LIMIT: Final[int] = 500


def _env_str(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_number(name: str, default, cast):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default
    if not math.isfinite(value) or value <= 0:
        logger.warning(
            "Non-positive or non-finite %s=%r; using default %s", name, raw, default
        )
        return default
    return value


def get_fleet_api_base_url() -> str:
    return _env_str("FLEET_API_BASE_URL", DEFAULT_FLEET_API_BASE_URL).rstrip("/")


def get_fleet_api_timeout() -> float:
    return _env_number("FLEET_API_TIMEOUT", DEFAULT_FLEET_API_TIMEOUT, float)


def get_nominatim_base_url() -> str:
    return _env_str("NOMINATIM_BASE_URL", DEFAULT_NOMINATIM_BASE_URL).rstrip("/")


def get_nominatim_reverse_url() -> str:
    return f"{get_nominatim_base_url()}/reverse"


def get_nominatim_user_agent() -> str:
    return _env_str("NOMINATIM_USER_AGENT", DEFAULT_NOMINATIM_USER_AGENT)


def get_geocode_language() -> str:
    return _env_str("GEOCODE_LANGUAGE", DEFAULT_GEOCODE_LANGUAGE)


def get_geocode_zoom() -> int:
    return _env_number("GEOCODE_ZOOM", DEFAULT_GEOCODE_ZOOM, int)


def get_position_fetch_limit() -> int:
    return _env_number("POSITION_FETCH_LIMIT", DEFAULT_POSITION_FETCH_LIMIT, int)


def get_log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()


__all__ = [
    "get_fleet_api_base_url",
    "get_fleet_api_timeout",
    "get_geocode_language",
    "get_geocode_zoom",
    "get_log_level",
    "get_nominatim_base_url",
    "get_nominatim_reverse_url",
    "get_nominatim_user_agent",
    "get_position_fetch_limit",
]
