"""HTTP access to the upstream release sources."""

from __future__ import annotations

import httpx

from tool_farm.updater.errors import NetworkError


async def http_get(url: str, *, user_agent: str, timeout: float) -> httpx.Response:
    """GET ``url`` and return the response, raising ``NetworkError`` unless it is 2xx.

    Timeouts and transport failures are reported the same way as bad
    status codes so callers can retry them uniformly.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.get(url, headers={"User-Agent": user_agent})
    except httpx.TimeoutException as exc:
        raise NetworkError(f"request to {url} timed out", code="timeout") from exc
    except httpx.RequestError as exc:
        raise NetworkError(f"request to {url} failed: {exc}", code=type(exc).__name__) from exc

    if not resp.is_success:
        raise NetworkError(
            f"request to {url} returned HTTP {resp.status_code}", code=resp.status_code
        )
    return resp
