# app/services/polling_view.py
from __future__ import annotations

import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Deque, Generic, List, Optional, Tuple, TypeVar

import httpx

from app.config.settings import Settings
from app.config.variants import DEFAULT_PAGE_SIZE, PAGE_SIZES
from app.schemas.market import CoinRecord, MarketViewPayload, SortDirection, SortKey
from app.services.coingecko import MarketDataSource
from app.services.counter_client import CounterDataSource, Number
from app.services.data_source import DataSource, DataSourceError
from app.services.view import compute_view
from app.utils.time import iso_z, utcnow

logger = logging.getLogger("coin_dashboard.view")

T = TypeVar("T")


def describe_error(exc: Exception) -> str:
    if isinstance(exc, DataSourceError):
        return exc.message
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return "Failed to load"


class PollingView(Generic[T]):
    """
    Keeps the latest snapshot of a remote resource.

    refresh() replaces the snapshot wholesale on success. On failure the
    previous snapshot stays and `error` carries a readable message.
    Every refresh takes a sequence number; a result is applied only when it
    is newer than the last applied one, so a slow response can never
    overwrite a fresher snapshot. After close() nothing is applied.
    """

    def __init__(self, source: DataSource, initial: T, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.source = source
        self.snapshot: T = initial
        self.page_size = page_size
        self.error: Optional[str] = None
        self.last_updated: Optional[datetime] = None
        self.version = 0

        self._in_flight = 0
        self._issued_seq = 0
        self._applied_seq = 0
        self._closed = False

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def _loading(self) -> AsyncIterator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def _accept(self, seq: int) -> bool:
        if self._closed:
            logger.debug("dropping result after close | seq=%s", seq)
            return False
        if seq <= self._applied_seq:
            logger.debug("dropping stale result | seq=%s | applied=%s", seq, self._applied_seq)
            return False
        self._applied_seq = seq
        return True

    def _apply(self, snapshot: T) -> None:
        self.snapshot = snapshot
        self.last_updated = utcnow()
        self.version += 1

    async def _run(self, call: Callable[[], Awaitable[T]]) -> bool:
        self._issued_seq += 1
        seq = self._issued_seq
        self.error = None

        async with self._loading():
            try:
                snapshot = await call()
            except (DataSourceError, httpx.HTTPError) as exc:
                if self._accept(seq):
                    self.error = describe_error(exc)
                    logger.warning("poll failed | seq=%s | err=%s", seq, self.error)
                return False

            if not self._accept(seq):
                return False
            self._apply(snapshot)
            return True

    async def refresh(self) -> bool:
        """Fetch a fresh snapshot. Returns True when it was applied."""
        return await self._run(lambda: self.source.fetch(self.page_size))

    def dismiss_error(self) -> None:
        self.error = None

    async def close(self) -> None:
        self._closed = True
        aclose = getattr(self.source, "aclose", None)
        if aclose is not None:
            await aclose()


class MarketView(PollingView[List[CoinRecord]]):
    """Market table: snapshot plus query/sort state and the derived view."""

    def __init__(
        self,
        source: DataSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        query: str = "",
        sort_key: SortKey | str = SortKey.MARKET_CAP_RANK,
        direction: SortDirection | str = SortDirection.ASC,
    ) -> None:
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}, got {page_size}")
        super().__init__(source, initial=[], page_size=page_size)
        self.query = query
        self.sort_key = SortKey(sort_key)
        self.direction = SortDirection(direction)
        self._memo_key: Optional[Tuple[Any, ...]] = None
        self._memo_value: List[CoinRecord] = []

    def set_query(self, text: str) -> None:
        self.query = text

    def set_sort_key(self, key: SortKey | str) -> None:
        self.sort_key = SortKey(key)

    def set_sort_direction(self, direction: SortDirection | str) -> None:
        self.direction = SortDirection(direction)

    def toggle_sort_direction(self) -> None:
        self.direction = SortDirection.DESC if self.direction is SortDirection.ASC else SortDirection.ASC

    async def set_page_size(self, page_size: int) -> bool:
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}, got {page_size}")
        self.page_size = page_size
        return await self.refresh()

    @property
    def view(self) -> List[CoinRecord]:
        key = (self.version, self.query, self.sort_key, self.direction)
        if key != self._memo_key:
            self._memo_value = compute_view(self.snapshot, self.query, self.sort_key, self.direction)
            self._memo_key = key
        return self._memo_value

    def payload(self) -> MarketViewPayload:
        coins = self.view
        return MarketViewPayload(
            coins=coins,
            count=len(coins),
            total=len(self.snapshot),
            query=self.query,
            sort_key=self.sort_key,
            direction=self.direction,
            page_size=self.page_size,
            loading=self.loading,
            error=self.error,
            last_updated=iso_z(self.last_updated),
        )


@dataclass(frozen=True)
class HistoryEntry:
    ts: datetime
    total: Number


class CounterView(PollingView[Optional[Number]]):
    """Counter display with add/reset actions and an optional change log."""

    def __init__(self, source: CounterDataSource, history_size: int = 0) -> None:
        super().__init__(source, initial=None, page_size=0)
        self.counter = source
        self.history: Optional[Deque[HistoryEntry]] = deque(maxlen=history_size) if history_size > 0 else None

    @property
    def total(self) -> Optional[Number]:
        return self.snapshot

    def _apply(self, snapshot: Optional[Number]) -> None:
        changed = snapshot != self.snapshot
        super()._apply(snapshot)
        if self.history is not None and changed and snapshot is not None:
            self.history.append(HistoryEntry(ts=self.last_updated or utcnow(), total=snapshot))

    async def add(self, value: Number) -> bool:
        return await self._run(lambda: self.counter.add(value))

    async def reset(self) -> bool:
        return await self._run(self.counter.reset)


def create_view(settings: Settings) -> PollingView[Any]:
    """Build the polling view for the configured dashboard variant."""
    profile = settings.profile
    timeout = settings.MARKET_REQUEST_TIMEOUT_SECONDS

    if profile["source"] == "counter":
        source = CounterDataSource(settings.MARKET_BASE_URL, timeout=timeout)
        return CounterView(source, history_size=int(profile["history_size"]))

    return MarketView(
        MarketDataSource(settings.MARKET_BASE_URL, timeout=timeout),
        page_size=settings.MARKET_PAGE_SIZE,
    )
