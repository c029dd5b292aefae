# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Default fetch primitive: HTTP GET with httpx.

JSON bodies (any `application/json` or `+json` content type) are parsed;
other bodies are returned as text. Non-2xx answers raise `FetchHTTPError`.
Transport errors (timeouts, connection failures) propagate as httpx
exceptions. There is no retry.
"""

from collections.abc import Mapping
from typing import Any

import httpx

from ..api.errors import FetchHTTPError
from ..core.log import get_logger
from ..core.types import DEFAULT_FETCH_TIMEOUT_SEC, Location


def _is_json(content_type: str) -> bool:
    media = content_type.split(";", 1)[0].strip().lower()
    return media == "application/json" or media.endswith("+json")


class HttpFetcher:
    """
    Callable fetch primitive: `await fetcher(location)` -> parsed payload.

    An `httpx.AsyncClient` can be injected (e.g. with a MockTransport in
    tests); otherwise one is created lazily and owned by the fetcher.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_sec: float = DEFAULT_FETCH_TIMEOUT_SEC,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout_sec
        self._headers = dict(headers or {})
        self._log = get_logger("fetch")

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def __call__(self, location: Location) -> Any:
        client = self._ensure_client()
        self._log.debug("fetch.request", location=location)
        response = await client.get(location, headers=self._headers, timeout=self._timeout)

        if not response.is_success:
            self._log.info("fetch.http_error", location=location, status_code=response.status_code)
            raise FetchHTTPError(location, response.status_code, response.text)

        if _is_json(response.headers.get("content-type", "")):
            return response.json()
        return response.text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
