"""
Shared HTTP client utilities for async operations.

Centralizes httpx client creation with sensible defaults, connection pooling,
timeouts, and a consistent User-Agent. Use these helpers instead of creating
ad-hoc clients across the codebase.

Pooled connections belong to the event loop that opened them, so the shared
client is tracked per running loop: each ``asyncio.run`` gets its own.
"""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import httpx

DEFAULT_TIMEOUT = float(os.getenv("TVL_HTTP_TIMEOUT", "15"))
DEFAULT_CONNECT_TIMEOUT = float(os.getenv("TVL_HTTP_CONNECT_TIMEOUT", "5"))
USER_AGENT = os.getenv("TVL_HTTP_UA", "tvl-toolkit/1.x")

_async_client: Optional[httpx.AsyncClient] = None
_async_client_loop: Optional[asyncio.AbstractEventLoop] = None


def _build_limits() -> httpx.Limits:
    return httpx.Limits(max_keepalive_connections=20, max_connections=100)


def _build_timeout() -> httpx.Timeout:
    return httpx.Timeout(DEFAULT_TIMEOUT, connect=DEFAULT_CONNECT_TIMEOUT)


def _default_headers() -> dict:
    return {"User-Agent": USER_AGENT, "Accept": "application/json"}


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def get_async_client() -> httpx.AsyncClient:
    """
    Get the shared asynchronous httpx client for the running event loop.

    A client left over from another (possibly closed) loop is dropped and a
    fresh one is built; its sockets cannot be reused from this loop.
    """
    global _async_client, _async_client_loop
    loop = _running_loop()
    if (
        _async_client is None
        or _async_client.is_closed
        or _async_client_loop is not loop
    ):
        _async_client = httpx.AsyncClient(
            timeout=_build_timeout(),
            limits=_build_limits(),
            headers=_default_headers(),
        )
        _async_client_loop = loop
    return _async_client


async def aclose_async_client() -> None:
    global _async_client, _async_client_loop
    client, loop = _async_client, _async_client_loop
    _async_client = None
    _async_client_loop = None
    if client is not None and loop is _running_loop():
        await client.aclose()
