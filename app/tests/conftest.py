from __future__ import annotations

import pytest

from app.schemas.market import CoinRecord
from app.tests.helpers import make_coin


@pytest.fixture()
def coins() -> list[CoinRecord]:
    return [
        make_coin("bitcoin", "btc", "Bitcoin", 67000.0, 1, 1.5, 1.3e12, 3.1e10),
        make_coin("ethereum", "eth", "Ethereum", 3500.0, 2, -2.0, 4.2e11, 1.5e10),
        make_coin("tether", "usdt", "Tether", 1.0, 3, 0.01, 1.1e11, 5.0e10),
        make_coin("bitcoin-cash", "bch", "Bitcoin Cash", 450.0, 18, -2.0, 8.9e9, 3.0e8),
        make_coin("wrapped-bitcoin", "wbtc", "Wrapped Bitcoin", 67000.0, 15, 1.4, 1.0e10, 2.0e8),
    ]
