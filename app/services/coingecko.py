"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.config.variants import COINGECKO_MARKETS_URL, DEFAULT_PAGE_SIZE
from app.schemas.market import CoinRecord
from app.services.data_source import DataSourceError

logger = logging.getLogger("coin_dashboard.coingecko")


def market_params(
    per_page: int = DEFAULT_PAGE_SIZE,
    vs_currency: str = "usd",
    order: str = "market_cap_desc",
    page: int = 1,
    sparkline: bool = False,
) -> dict[str, Any]:
    return {
        "vs_currency": vs_currency,
        "order": order,
        "per_page": per_page,
        "page": page,
        "sparkline": str(sparkline).lower(),
        "price_change_percentage": "24h",
    }


async def fetch_raw_market_data(
    client: httpx.AsyncClient,
    url: str = COINGECKO_MARKETS_URL,
    per_page: int = DEFAULT_PAGE_SIZE,
) -> list[dict[str, Any]]:
    """Return the raw CoinGecko market rows, raising DataSourceError on any failure."""

    try:
        response = await client.get(
            url,
            params=market_params(per_page=per_page),
            headers={"Cache-Control": "no-store"},
        )
    except httpx.HTTPError as exc:
        logger.warning("market fetch failed | url=%s | err=%r", url, exc)
        raise DataSourceError("Failed to load market data") from exc

    if response.is_error:
        raise DataSourceError(f"HTTP {response.status_code}", status_code=response.status_code)

    try:
        data = response.json()
    except ValueError as exc:
        raise DataSourceError("Malformed market payload") from exc

    if not isinstance(data, list):
        raise DataSourceError("Malformed market payload: expected a list of coins")
    return data


class MarketDataSource:
    """CoinGecko `/coins/markets` as a polling data source."""

    def __init__(
        self,
        base_url: str = COINGECKO_MARKETS_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def fetch(self, page_size: int) -> list[CoinRecord]:
        rows = await fetch_raw_market_data(self._client, url=self.base_url, per_page=page_size)
        try:
            return [CoinRecord.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise DataSourceError("Malformed market payload") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
