# app/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

from app.config.variants import DEFAULT_PAGE_SIZE, PAGE_SIZES, VARIANT_PROFILES


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def parse_page_size(value: str | None, default: int = DEFAULT_PAGE_SIZE) -> int:
    size = parse_int(value, default)
    if size not in PAGE_SIZES:
        raise ValueError(f"Bad MARKET_PAGE_SIZE: {size} (allowed: {', '.join(map(str, PAGE_SIZES))})")
    return size


def parse_variant(value: str | None, default: str = "market") -> str:
    if not value:
        return default
    v = value.strip().lower()
    if v not in VARIANT_PROFILES:
        raise ValueError(f"Unknown DASHBOARD_VARIANT: {v}")
    return v


@dataclass(frozen=True)
class Settings:
    DASHBOARD_VARIANT: str
    MARKET_BASE_URL: str
    MARKET_POLL_INTERVAL_SECONDS: int
    MARKET_PAGE_SIZE: int
    MARKET_POLL_ENABLED: bool
    MARKET_REQUEST_TIMEOUT_SECONDS: float
    COUNTER_STRICT_VALUES: bool

    @property
    def profile(self) -> Dict[str, Any]:
        return VARIANT_PROFILES[self.DASHBOARD_VARIANT]

    @staticmethod
    def from_env() -> "Settings":
        variant = parse_variant(os.getenv("DASHBOARD_VARIANT"))
        profile = VARIANT_PROFILES[variant]
        return Settings(
            DASHBOARD_VARIANT=variant,
            MARKET_BASE_URL=os.getenv("MARKET_BASE_URL", profile["base_url"]),
            MARKET_POLL_INTERVAL_SECONDS=max(
                1, parse_int(os.getenv("MARKET_POLL_INTERVAL_SECONDS"), profile["poll_interval_s"])
            ),
            MARKET_PAGE_SIZE=parse_page_size(os.getenv("MARKET_PAGE_SIZE")),
            MARKET_POLL_ENABLED=parse_bool(os.getenv("MARKET_POLL_ENABLED"), True),
            MARKET_REQUEST_TIMEOUT_SECONDS=parse_float(os.getenv("MARKET_REQUEST_TIMEOUT_SECONDS"), 10.0),
            COUNTER_STRICT_VALUES=parse_bool(os.getenv("COUNTER_STRICT_VALUES"), False),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
