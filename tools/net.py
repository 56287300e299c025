# tools/net.py
"""
NutriFlow — Network helpers
===========================
Blocking `requests` calls run in a worker thread and are raced against a
deadline. The same timeout is handed to `requests`, so an abandoned worker
still gives up its connection on its own.
"""

import asyncio
from typing import Any, Awaitable, Dict, Optional, TypeVar

import requests

T = TypeVar("T")


class RequestTimeoutError(Exception):
    """The deadline expired before the call completed."""


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """Await `awaitable`, abandoning it after `seconds`."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(f"Timeout after {seconds:g}s") from e


async def http_get(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = 8.0,
) -> requests.Response:
    """GET with a hard deadline. Raises RequestTimeoutError or requests.RequestException."""
    return await with_timeout(
        asyncio.to_thread(requests.get, url, params=params, timeout=timeout),
        timeout,
    )


async def http_post_json(
    url: str,
    payload: Dict[str, Any],
    timeout: float = 300.0,
) -> requests.Response:
    """POST a JSON body with a hard deadline."""
    return await with_timeout(
        asyncio.to_thread(
            requests.post,
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        ),
        timeout,
    )


__all__ = ["RequestTimeoutError", "with_timeout", "http_get", "http_post_json"]
