"""
JSON request helper shared by the fleet backend and Nominatim clients.

Every non-success answer is turned into an application exception here, so
callers only ever see decoded JSON, ``None`` for statuses they opted into,
or an ``ExternalServiceError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import ContentTypeError

from core.exceptions import ExternalServiceException, RateLimitException

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 5


def _retry_after(headers: Any) -> int:
    try:
        return int(headers.get("Retry-After", DEFAULT_RETRY_AFTER))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER


async def _raise_for_status(
    response: Any,
    *,
    service_name: str,
    url: str,
) -> None:
    if response.status == 429:
        msg = f"{service_name} error: 429"
        raise RateLimitException(
            msg,
            {
                "status": 429,
                "retry_after": _retry_after(response.headers),
                "url": url,
            },
        )
    body = await response.text()
    msg = f"{service_name} error: {response.status}"
    raise ExternalServiceException(
        msg,
        {"status": response.status, "body": body, "url": url},
    )


async def request_json(
    method: str,
    url: str,
    *,
    session: Any,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    expected_status: int | Iterable[int] = 200,
    none_on: Iterable[int] | None = None,
    service_name: str = "Service",
    timeout: Any | None = None,
) -> Any | None:
    """
    Send a request and decode the JSON body.

    Statuses listed in ``none_on`` return ``None``. 429 raises
    ``RateLimitException``; any other unexpected status, or a body that is
    not JSON, raises ``ExternalServiceException``.
    """
    expected = (
        {expected_status} if isinstance(expected_status, int) else set(expected_status)
    )
    none_on_set = set(none_on or ())

    verb = method.upper()
    send = {"GET": session.get, "POST": session.post}.get(verb)
    if send is None:
        msg = f"{service_name} request error: unsupported method {verb}"
        raise ExternalServiceException(msg, {"url": url})

    kwargs: dict[str, Any] = {"params": params, "json": json, "headers": headers}
    if timeout is not None:
        kwargs["timeout"] = timeout

    async with send(url, **kwargs) as response:
        response_url = str(getattr(response, "url", url))
        if response.status in none_on_set:
            logger.debug("%s returned %s for %s", service_name, response.status, url)
            return None
        if response.status not in expected:
            await _raise_for_status(
                response,
                service_name=service_name,
                url=response_url,
            )
        try:
            return await response.json()
        except (ContentTypeError, ValueError) as e:
            msg = f"{service_name} error: invalid JSON body"
            raise ExternalServiceException(msg, {"url": response_url}) from e
