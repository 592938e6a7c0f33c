from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from time import perf_counter
from typing import Any

import httpx

from relief_proxy.errors import (
    ConfigurationError,
    UpstreamConnectionError,
    UpstreamSchemaError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "Relief-Proxy/1.0"


def parse_envelope(payload: Any, origin: str) -> list[Any]:
    """Return the record list of a ``{success, count, data}`` envelope."""
    if not isinstance(payload, dict):
        raise UpstreamSchemaError(f"{origin} returned a non-object body")
    if payload.get("success") is not True:
        raise UpstreamSchemaError(f"{origin} response is missing a true success flag")
    data = payload.get("data")
    if not isinstance(data, list):
        raise UpstreamSchemaError(f"{origin} response data is missing or not a list")
    return data


class FeedClient:
    def __init__(
        self,
        feed: str,
        url: str | None,
        url_setting: str,
        timeout_seconds: float = 30.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._feed = feed
        self._url = url
        self._url_setting = url_setting
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    @property
    def feed(self) -> str:
        return self._feed

    async def fetch_records(self) -> list[Any]:
        if not self._url:
            raise ConfigurationError(f"{self._url_setting} environment variable is not set")

        started = perf_counter()
        try:
            response = await asyncio.wait_for(self._get(self._url), timeout=self._timeout_seconds)
        except TimeoutError as exc:
            raise UpstreamTimeoutError(
                f"{self._feed} upstream did not respond within {self._timeout_seconds:g}s"
            ) from exc
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(f"{self._feed} upstream timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(f"{self._feed} upstream request failed: {exc}") from exc

        elapsed_ms = (perf_counter() - started) * 1000.0
        logger.info(
            "feed_upstream_responded",
            extra={"feed": self._feed, "status_code": response.status_code, "duration_ms": round(elapsed_ms, 1)},
        )
        if not response.is_success:
            raise UpstreamStatusError(self._feed, response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamSchemaError(f"{self._feed} upstream returned invalid JSON") from exc
        return parse_envelope(payload, origin=f"{self._feed} upstream")

    async def _get(self, url: str) -> httpx.Response:
        factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
        async with factory() as client:
            return await client.get(
                url,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            )
