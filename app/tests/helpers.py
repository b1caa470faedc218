from __future__ import annotations

from typing import Any

from app.config.settings import Settings
from app.schemas.market import CoinRecord


def make_coin(
    coin_id: str,
    symbol: str,
    name: str,
    price: float,
    rank: int | None,
    change: float | None = 0.0,
    market_cap: float = 0.0,
    volume: float = 0.0,
) -> CoinRecord:
    return CoinRecord(
        id=coin_id,
        symbol=symbol,
        name=name,
        image=f"https://img.example/{coin_id}.png",
        current_price=price,
        market_cap=market_cap,
        market_cap_rank=rank,
        price_change_percentage_24h=change,
        total_volume=volume,
    )


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "DASHBOARD_VARIANT": "market",
        "MARKET_BASE_URL": "https://markets.test/api/v3/coins/markets",
        "MARKET_POLL_INTERVAL_SECONDS": 60,
        "MARKET_PAGE_SIZE": 50,
        "MARKET_POLL_ENABLED": False,
        "MARKET_REQUEST_TIMEOUT_SECONDS": 1.0,
        "COUNTER_STRICT_VALUES": False,
    }
    values.update(overrides)
    return Settings(**values)


class FakeSource:
    """Data source returning queued results; exceptions in the queue are raised.

    The last queued item is repeated once the queue runs down to it.
    """

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls: list[int] = []
        self.closed = False

    async def fetch(self, page_size: int) -> Any:
        self.calls.append(page_size)
        item = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True
