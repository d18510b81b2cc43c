"""Bounded HTTP fetcher — one request timeout, one longer batch timeout."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Iterable, Mapping, TypeVar
from urllib.parse import quote

import httpx

from paper_tracker.domain.exceptions import (
    BatchTimeoutError,
    ProviderNetworkError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_BATCH_TIMEOUT = 60.0
USER_AGENT = "paper-tracker/1.0"


class BoundedFetcher:
    """Thin wrapper around a shared :class:`httpx.AsyncClient`.

    Every request is bounded by *request_timeout* unless the caller passes a
    longer one explicitly (the compile bridge does).  :meth:`gather` joins a
    fan-out of requests under *batch_timeout*, which must be strictly longer
    than the single-request timeout.  The client is owned by the caller and
    is never closed here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        batch_timeout: float = DEFAULT_BATCH_TIMEOUT,
    ) -> None:
        if batch_timeout <= request_timeout:
            raise ValueError(
                f"batch timeout ({batch_timeout}s) must be longer than "
                f"the request timeout ({request_timeout}s)"
            )
        self._client = client
        self.request_timeout = request_timeout
        self.batch_timeout = batch_timeout

    async def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
        provider_name: str = "",
    ) -> httpx.Response:
        return await self.request(
            "GET", url, headers=headers, params=params, timeout=timeout,
            provider_name=provider_name,
        )

    async def head(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
        provider_name: str = "",
    ) -> httpx.Response:
        return await self.request(
            "HEAD", url, headers=headers, params=params, timeout=timeout,
            provider_name=provider_name,
        )

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        provider_name: str = "",
    ) -> httpx.Response:
        return await self.request(
            "POST", url, headers=headers, json=payload, timeout=timeout,
            provider_name=provider_name,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        provider_name: str = "",
    ) -> httpx.Response:
        """Issue one request; translate transport failures into domain errors.

        Non-2xx responses are returned as-is: status interpretation is
        provider-specific and belongs to the adapters.  The timeout caps the
        whole exchange, not each httpx phase separately.
        """
        effective_timeout = timeout if timeout is not None else self.request_timeout
        try:
            return await asyncio.wait_for(
                self._client.request(
                    method,
                    url,
                    headers=dict(headers) if headers else None,
                    params=dict(params) if params else None,
                    json=json,
                    timeout=httpx.Timeout(effective_timeout),
                ),
                timeout=effective_timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise ProviderTimeoutError(
                f"Request to {url} timed out after {effective_timeout:g}s", provider_name
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderNetworkError(
                f"Network error fetching {url}: {exc}", provider_name
            ) from exc

    async def gather(
        self,
        aws: Iterable[Awaitable[T]],
        *,
        what: str = "batch",
        provider_name: str = "",
    ) -> list[T]:
        """Run *aws* concurrently and join them under the batch timeout.

        On timeout the whole batch fails: callers never see partial results.
        """
        tasks = list(aws)
        try:
            return list(
                await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.batch_timeout)
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "%s timed out after %gs (%d requests)", what, self.batch_timeout, len(tasks)
            )
            raise BatchTimeoutError(
                f"{what} timed out after {self.batch_timeout:g}s for {len(tasks)} files",
                provider_name,
            ) from exc


def encode_path(path: str) -> str:
    """Percent-encode each segment of a repository path, keeping the slashes."""
    return "/".join(quote(segment, safe="") for segment in path.split("/"))
