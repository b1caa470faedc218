# app/config/variants.py
from __future__ import annotations

COINGECKO_MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"

# Page size is a server-side request parameter, not a client-side slice
PAGE_SIZES = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 50

VARIANT_PROFILES = {
    "market": {
        "source": "market",
        "base_url": COINGECKO_MARKETS_URL,
        "poll_interval_s": 60,
        "actions": (),
        "history_size": 0,
    },
    "counter": {
        "source": "counter",
        "base_url": "http://127.0.0.1:8000",
        "poll_interval_s": 2,
        "actions": ("add", "reset"),
        "history_size": 0,
    },
    "counter-history": {
        "source": "counter",
        "base_url": "http://127.0.0.1:8000",
        "poll_interval_s": 5,
        "actions": ("add", "reset"),
        "history_size": 20,
    },
}
