"""Pydantic models for the CoinGecko market payload and the derived view."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SortKey(str, Enum):
    """Sortable CoinRecord attributes."""

    MARKET_CAP_RANK = "market_cap_rank"
    ID = "id"
    SYMBOL = "symbol"
    NAME = "name"
    CURRENT_PRICE = "current_price"
    MARKET_CAP = "market_cap"
    PRICE_CHANGE_PERCENTAGE_24H = "price_change_percentage_24h"
    TOTAL_VOLUME = "total_volume"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class CoinRecord(BaseModel):
    """One row of the CoinGecko `/coins/markets` response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    symbol: str
    name: str
    image: str = ""
    current_price: float = Field(0.0, ge=0)
    market_cap: float = Field(0.0, ge=0)
    market_cap_rank: Optional[int] = Field(None, gt=0)
    price_change_percentage_24h: float = 0.0
    total_volume: float = Field(0.0, ge=0)

    @field_validator(
        "current_price",
        "market_cap",
        "price_change_percentage_24h",
        "total_volume",
        mode="before",
    )
    @classmethod
    def _null_is_zero(cls, value: Any) -> Any:
        # CoinGecko returns null for freshly listed or delisted coins
        return 0.0 if value is None else value

    @field_validator("image", mode="before")
    @classmethod
    def _null_image(cls, value: Any) -> Any:
        return "" if value is None else value


class PageSizeUpdate(BaseModel):
    page_size: int


class MarketViewPayload(BaseModel):
    """Derived projection handed to the rendering layer."""

    coins: list[CoinRecord]
    count: int
    total: int
    query: str
    sort_key: SortKey
    direction: SortDirection
    page_size: int
    loading: bool
    error: Optional[str] = None
    last_updated: Optional[str] = None
