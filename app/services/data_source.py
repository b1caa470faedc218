"""Data source contract consumed by the polling view."""

from __future__ import annotations

from typing import Any, Optional, Protocol


class DataSourceError(Exception):
    """Upstream fetch failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DataSource(Protocol):
    async def fetch(self, page_size: int) -> Any:
        ...
