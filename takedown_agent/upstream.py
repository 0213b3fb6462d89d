"""Shared request helper for the upstream adapters."""
from __future__ import annotations

from typing import Any

import httpx

from .errors import FetchFailure

_BODY_LIMIT = 2000


async def request_json(
    client: httpx.AsyncClient,
    source: str,
    method: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """Issue one request and return the decoded JSON body.

    Every failure is raised as a FetchFailure tagged with the reason, so the
    caller can decide between retrying and falling back.
    """
    kwargs: dict[str, Any] = {"params": params, "json": json, "headers": headers}
    if timeout is not None:
        kwargs["timeout"] = timeout

    try:
        res = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise FetchFailure(source, "timeout", str(e) or "request timed out") from e
    except httpx.RequestError as e:
        raise FetchFailure(source, "network", str(e) or type(e).__name__) from e

    if res.status_code >= 500:
        raise FetchFailure(
            source, "upstream_5xx", status_code=res.status_code, body=res.text[:_BODY_LIMIT]
        )
    if res.status_code >= 400:
        raise FetchFailure(
            source, "upstream_4xx", status_code=res.status_code, body=res.text[:_BODY_LIMIT]
        )

    try:
        return res.json()
    except ValueError as e:
        raise FetchFailure(source, "parse", "response was not JSON", body=res.text[:_BODY_LIMIT]) from e
