"""
Derived projection of a market snapshot: filter by query, then sort.

compute_view() is pure: same inputs, same output, nothing mutated.
"""

from __future__ import annotations

import locale
from functools import cmp_to_key
from typing import Any, Sequence

from app.schemas.market import CoinRecord, SortDirection, SortKey


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _collation_key(text: str) -> tuple[str, str]:
    # case-insensitive first, like localeCompare, whatever LC_COLLATE is
    return locale.strxfrm(text.casefold()), locale.strxfrm(text)


def compare_values(a: Any, b: Any) -> int:
    """
    Three-way compare used for sorting.

    Numbers compare by subtraction, everything else by locale collation.
    Missing values (None) order after present ones.
    """
    if a is None or b is None:
        if a is None and b is None:
            return 0
        return 1 if a is None else -1

    if _is_number(a) and _is_number(b):
        diff = a - b
        return (diff > 0) - (diff < 0)

    sa = _collation_key(str(a))
    sb = _collation_key(str(b))
    return (sa > sb) - (sa < sb)


def matches_query(coin: CoinRecord, query: str) -> bool:
    q = query.strip().casefold()
    if not q:
        return True
    return q in coin.name.casefold() or q in coin.symbol.casefold()


def compute_view(
    coins: Sequence[CoinRecord],
    query: str = "",
    sort_key: SortKey | str = SortKey.MARKET_CAP_RANK,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[CoinRecord]:
    key = SortKey(sort_key).value
    direction = SortDirection(direction)

    filtered = [c for c in coins if matches_query(c, query)]

    # sorted() is stable, so ties keep their snapshot order
    ordered = sorted(
        filtered,
        key=cmp_to_key(lambda a, b: compare_values(getattr(a, key), getattr(b, key))),
    )
    if direction is SortDirection.DESC:
        ordered.reverse()
    return ordered
