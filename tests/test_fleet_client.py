from datetime import UTC, datetime

import aiohttp
import pytest

from core.clients.fleet import FleetApiClient, unwrap_list_payload
from core.exceptions import ExternalServiceException, ResourceNotFoundException
from core.http.circuit_breaker import CircuitOpen, fleet_api_breaker
from tests.http_fakes import FakeResponse, FakeSession

START = datetime(2024, 1, 15, 8, 0, tzinfo=UTC)
END = datetime(2024, 1, 15, 8, 30, tzinfo=UTC)


def _client(session: FakeSession) -> FleetApiClient:
    return FleetApiClient(session=session)


@pytest.mark.asyncio
async def test_get_vehicle_positions_formats_window_params() -> None:
    records = [{"coordinate": [11.5, 3.85], "recordedAt": "2024-01-15T08:10:00Z"}]
    session = FakeSession(get_responses=[FakeResponse(json_data=records)])

    result = await _client(session).get_vehicle_positions(
        7,
        start=START,
        end=END,
        limit=500,
    )

    assert result == records
    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "http://fleet.test/api/positions/vehicle/7"
    assert kwargs["params"] == {
        "startDate": "2024-01-15T08:00:00Z",
        "endDate": "2024-01-15T08:30:00Z",
        "limit": 500,
    }
    assert isinstance(kwargs["timeout"], aiohttp.ClientTimeout)


@pytest.mark.asyncio
async def test_get_vehicle_positions_unwraps_page_envelope() -> None:
    records = [{"coordinate": [11.5, 3.85], "recordedAt": "2024-01-15T08:10:00Z"}]
    session = FakeSession(
        get_responses=[FakeResponse(json_data={"content": records, "totalPages": 1})]
    )

    result = await _client(session).get_vehicle_positions(
        7,
        start=START,
        end=END,
        limit=10,
    )

    assert result == records


@pytest.mark.asyncio
async def test_get_vehicle_positions_raises_on_server_error() -> None:
    session = FakeSession(get_responses=[FakeResponse(status=503, text_data="down")])

    with pytest.raises(ExternalServiceException) as raised:
        await _client(session).get_vehicle_positions(
            7,
            start=START,
            end=END,
            limit=10,
        )

    assert raised.value.message == "Fleet positions error: 503"


@pytest.mark.asyncio
async def test_get_vehicle_positions_retries_connection_errors() -> None:
    session = FakeSession(
        get_responses=[
            aiohttp.ClientConnectionError("reset"),
            FakeResponse(json_data=[]),
        ]
    )

    result = await _client(session).get_vehicle_positions(
        7,
        start=START,
        end=END,
        limit=10,
    )

    assert result == []
    assert len(session.requests) == 2


@pytest.mark.asyncio
async def test_open_circuit_short_circuits_requests() -> None:
    for _ in range(fleet_api_breaker.failure_threshold):
        fleet_api_breaker.record_failure()
    session = FakeSession()

    with pytest.raises(CircuitOpen):
        await _client(session).get_vehicle_positions(
            7,
            start=START,
            end=END,
            limit=10,
        )

    assert session.requests == []


@pytest.mark.asyncio
async def test_get_trip_returns_record() -> None:
    record = {"tripId": 42, "vehicleId": 7}
    session = FakeSession(get_responses=[FakeResponse(json_data=record)])

    result = await _client(session).get_trip(42)

    assert result == record
    assert session.requests[0][1] == "http://fleet.test/api/trips/42"


@pytest.mark.asyncio
async def test_get_trip_raises_not_found_on_404() -> None:
    session = FakeSession(get_responses=[FakeResponse(status=404)])

    with pytest.raises(ResourceNotFoundException) as raised:
        await _client(session).get_trip(42)

    assert raised.value.message == "Trip 42 not found"
    assert fleet_api_breaker.state == "closed"


def test_unwrap_list_payload_rejects_unexpected_shapes() -> None:
    with pytest.raises(ExternalServiceException):
        unwrap_list_payload({"total": 3}, service_name="Fleet positions")
    with pytest.raises(ExternalServiceException):
        unwrap_list_payload("nope", service_name="Fleet positions")
