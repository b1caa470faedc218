# app/scripts/poll_once.py
from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict, Optional

from app.config.variants import PAGE_SIZES, VARIANT_PROFILES
from app.schemas.market import SortDirection, SortKey
from app.services.coingecko import MarketDataSource
from app.services.counter_client import CounterDataSource
from app.services.polling_view import CounterView, MarketView, PollingView


def build_view(args: argparse.Namespace) -> PollingView:
    profile = VARIANT_PROFILES[args.variant]
    base_url = args.base_url or profile["base_url"]

    if profile["source"] == "counter":
        return CounterView(CounterDataSource(base_url), history_size=int(profile["history_size"]))

    view = MarketView(MarketDataSource(base_url), page_size=args.page_size)
    view.set_query(args.query)
    view.set_sort_key(args.sort_key)
    view.set_sort_direction(args.direction)
    return view


async def run_once(view: PollingView, add: Optional[float] = None, reset: bool = False) -> Dict[str, Any]:
    try:
        if isinstance(view, CounterView) and reset:
            await view.reset()
        elif isinstance(view, CounterView) and add is not None:
            await view.add(add)
        else:
            await view.refresh()

        if isinstance(view, MarketView):
            return view.payload().model_dump(mode="json")
        return {"total": view.snapshot, "error": view.error}
    finally:
        await view.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Poll a dashboard source once and print the view")
    parser.add_argument("--variant", choices=sorted(VARIANT_PROFILES), default="market")
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--page-size", type=int, choices=PAGE_SIZES, default=50)
    parser.add_argument("--query", default="")
    parser.add_argument("--sort-key", choices=[k.value for k in SortKey], default=SortKey.MARKET_CAP_RANK.value)
    parser.add_argument("--direction", choices=[d.value for d in SortDirection], default=SortDirection.ASC.value)
    parser.add_argument("--add", type=float, default=None)
    parser.add_argument("--reset", action="store_true")
    args = parser.parse_args(argv)

    result = asyncio.run(run_once(build_view(args), add=args.add, reset=args.reset))
    print(json.dumps(result))
    return 1 if result.get("error") else 0


if __name__ == "__main__":
    raise SystemExit(main())
