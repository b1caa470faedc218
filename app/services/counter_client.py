"""HTTP client for the counter service, used by the counter dashboard variants."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx

from app.services.data_source import DataSourceError

logger = logging.getLogger("coin_dashboard.counter")

Number = Union[int, float]


class CounterDataSource:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def _request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning("counter request failed | %s %s | err=%r", method, url, exc)
            raise DataSourceError("Failed to reach counter service") from exc

        if response.is_error:
            raise DataSourceError(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise DataSourceError("Malformed counter payload") from exc
        if not isinstance(body, dict) or "total" not in body:
            raise DataSourceError("Malformed counter payload: missing total")
        return body

    async def fetch(self, page_size: int = 0) -> Number:
        # page_size has no meaning for a single total
        body = await self._request("GET", "/total")
        return body["total"]

    async def add(self, value: Number) -> Number:
        body = await self._request("POST", "/total", json={"value": value})
        return body["total"]

    async def reset(self) -> Number:
        body = await self._request("POST", "/total/reset")
        return body["total"]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
