import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from network_blocker import install_network_blocker

from core.http.circuit_breaker import fleet_api_breaker, nominatim_breaker  # noqa: E402
from trips.services.geocoding import geocode_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FLEET_API_BASE_URL", "http://fleet.test/api")
    monkeypatch.setenv("NOMINATIM_BASE_URL", "http://nominatim.test")
    monkeypatch.setenv("NOMINATIM_USER_AGENT", "FleetPlaybackTests/1.0")
    install_network_blocker(monkeypatch)
    fleet_api_breaker.reset()
    nominatim_breaker.reset()
    geocode_cache.clear()
    yield
    geocode_cache.clear()
