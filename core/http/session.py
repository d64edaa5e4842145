"""Shared aiohttp session for the fleet backend and Nominatim clients.

One ``ClientSession`` is kept per process and event loop. Forked worker
processes and test event loops each get a fresh session on first use.
"""

from __future__ import annotations

import asyncio
import logging
import os

import aiohttp

from core.constants import (
    HTTP_CONNECTION_LIMIT,
    HTTP_TIMEOUT_CONNECT,
    HTTP_TIMEOUT_SOCK_READ,
    HTTP_TIMEOUT_TOTAL,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "FleetPlayback/1.0",
    "Accept": "application/json",
}


class SessionState:
    """State container for aiohttp session to avoid global variables."""

    session: aiohttp.ClientSession | None = None
    session_owner_pid: int | None = None


def _new_session() -> aiohttp.ClientSession:
    timeout = aiohttp.ClientTimeout(
        total=HTTP_TIMEOUT_TOTAL,
        connect=HTTP_TIMEOUT_CONNECT,
        sock_read=HTTP_TIMEOUT_SOCK_READ,
    )
    connector = aiohttp.TCPConnector(
        limit=HTTP_CONNECTION_LIMIT,
        enable_cleanup_closed=True,
    )
    return aiohttp.ClientSession(
        timeout=timeout,
        headers=DEFAULT_HEADERS,
        connector=connector,
    )


def _forget_forked_session(pid: int) -> None:
    # the parent's connector sockets are not ours to close
    if SessionState.session is None or SessionState.session_owner_pid == pid:
        return
    logger.debug(
        "Discarding session inherited from process %s in process %s",
        SessionState.session_owner_pid,
        pid,
    )
    SessionState.session = None
    SessionState.session_owner_pid = None


async def _drop_session_from_other_loop() -> None:
    session = SessionState.session
    if session is None:
        return
    loop = session.loop
    if loop is asyncio.get_running_loop() and not loop.is_closed():
        return
    logger.info("Event loop changed; replacing shared HTTP session")
    if not session.closed and not loop.is_closed():
        try:
            await session.close()
        except Exception as e:
            logger.warning("Error closing stale session: %s", e)
    SessionState.session = None


async def get_session() -> aiohttp.ClientSession:
    """Return the shared session, creating it if needed."""
    pid = os.getpid()
    _forget_forked_session(pid)
    await _drop_session_from_other_loop()

    if SessionState.session is None or SessionState.session.closed:
        SessionState.session = _new_session()
        SessionState.session_owner_pid = pid
        logger.debug("Created new aiohttp session for process %s", pid)

    return SessionState.session


async def cleanup_session() -> None:
    """Close the shared session for the current process."""
    session = SessionState.session
    if session is not None and not session.closed:
        try:
            await session.close()
            logger.info("Closed aiohttp session for process %s", os.getpid())
        except Exception as e:
            logger.warning("Error closing session: %s", e)

    SessionState.session = None
    SessionState.session_owner_pid = None
