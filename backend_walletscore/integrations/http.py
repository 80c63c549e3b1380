"""
Shared HTTP helpers for explorer and provider clients.

- request_json: retry on 429 and transport errors with exponential backoff,
  then convert whatever is left into UpstreamUnavailableError.
- FixedDelayLimiter: serialises calls and sleeps a fixed delay before each one
  (providers document fixed per-second limits, so no backoff here).
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from backend_walletscore.core.exceptions import UpstreamUnavailableError
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = 1.0
REQUEST_TIMEOUT = 30.0


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff: float = RETRY_BACKOFF,
    **kwargs: Any,
) -> httpx.Response:
    last_err: Exception | None = None
    response: httpx.Response | None = None
    for attempt in range(max_retries):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            last_err = e
            logger.warning("http_transport_error", url=url, attempt=attempt + 1, error=str(e))
        else:
            if response.status_code != 429:
                return response
            logger.warning("http_rate_limited", url=url, attempt=attempt + 1)
        if attempt + 1 < max_retries:
            await asyncio.sleep(backoff * (2 ** attempt))
    if response is not None:
        return response
    raise last_err or RuntimeError("request failed")


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    max_retries: int = MAX_RETRIES,
    backoff: float = RETRY_BACKOFF,
    **kwargs: Any,
) -> Any:
    """
    Issue a request and return the decoded JSON body.

    Non-2xx after retries, transport errors and undecodable bodies raise
    UpstreamUnavailableError tagged with the provider name. Callers that need
    to treat a status (e.g. 404) as "no data" check `response` themselves via
    request_response().
    """
    response = await request_response(
        client, method, url, provider=provider, max_retries=max_retries, backoff=backoff, **kwargs
    )
    return decode_json(response, provider=provider)


async def request_response(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    max_retries: int = MAX_RETRIES,
    backoff: float = RETRY_BACKOFF,
    allow_status: tuple[int, ...] = (),
    **kwargs: Any,
) -> httpx.Response:
    """Like request_json but returns the response; statuses in allow_status are not treated as errors."""
    try:
        response = await _request_with_retry(
            client, method, url, max_retries=max_retries, backoff=backoff, **kwargs
        )
    except httpx.HTTPError as e:
        logger.warning("upstream_request_failed", provider=provider, error=str(e))
        raise UpstreamUnavailableError(f"{provider} request failed", provider=provider) from e
    if response.status_code in allow_status:
        return response
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning("upstream_bad_status", provider=provider, status=response.status_code)
        raise UpstreamUnavailableError(
            f"{provider} returned HTTP {response.status_code}", provider=provider
        ) from e
    return response


def decode_json(response: httpx.Response, *, provider: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        logger.warning("upstream_malformed_json", provider=provider)
        raise UpstreamUnavailableError(f"{provider} returned malformed JSON", provider=provider) from e


async def graphql_query(
    client: httpx.AsyncClient,
    url: str,
    query: str,
    variables: dict[str, Any],
    *,
    provider: str,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """POST a GraphQL query; GraphQL-level errors count as upstream failures."""
    body = await request_json(
        client,
        "POST",
        url,
        provider=provider,
        json={"query": query, "variables": variables},
        headers=headers,
    )
    if not isinstance(body, dict):
        raise UpstreamUnavailableError(f"{provider} returned an unexpected body", provider=provider)
    if body.get("errors"):
        logger.warning("graphql_errors", provider=provider, errors=str(body["errors"])[:200])
        raise UpstreamUnavailableError(f"{provider} query failed", provider=provider)
    return body.get("data") or {}


class FixedDelayLimiter:
    """
    Shared throttle: one call at a time, each preceded by a fixed sleep.

        async with limiter:
            await client.get(...)
    """

    def __init__(self, delay_sec: float) -> None:
        self.delay_sec = delay_sec
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> FixedDelayLimiter:
        await self._lock.acquire()
        try:
            if self.delay_sec > 0:
                await asyncio.sleep(self.delay_sec)
        except BaseException:
            self._lock.release()
            raise
        return self

    async def __aexit__(self, *exc: object) -> None:
        self._lock.release()
