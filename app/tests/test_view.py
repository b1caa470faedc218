from __future__ import annotations

import pytest

from app.schemas.market import SortDirection, SortKey
from app.services.view import compare_values, compute_view, matches_query
from app.tests.helpers import make_coin


def _ids(coins):
    return [c.id for c in coins]


def test_empty_query_is_a_permutation_of_the_snapshot(coins):
    for key in SortKey:
        for direction in SortDirection:
            result = compute_view(coins, "", key, direction)
            assert sorted(_ids(result)) == sorted(_ids(coins))
            assert len(result) == len(coins)


def test_whitespace_query_matches_everything(coins):
    assert len(compute_view(coins, "   ")) == len(coins)


def test_query_matches_name_or_symbol_case_insensitively(coins):
    result = compute_view(coins, "BiTcOiN")
    assert _ids(result) == ["bitcoin", "wrapped-bitcoin", "bitcoin-cash"]

    by_symbol = compute_view(coins, "USDT")
    assert _ids(by_symbol) == ["tether"]


def test_query_excludes_non_matching_records(coins):
    result = compute_view(coins, "eth")
    # "Tether" contains "eth" too
    assert _ids(result) == ["ethereum", "tether"]
    for coin in coins:
        assert (coin in result) == matches_query(coin, "eth")


def test_no_match_returns_empty(coins):
    assert compute_view(coins, "dogecoin") == []


def test_numeric_sort_ascending_and_descending_are_exact_reverses(coins):
    asc = compute_view(coins, "", SortKey.CURRENT_PRICE, SortDirection.ASC)
    desc = compute_view(coins, "", SortKey.CURRENT_PRICE, SortDirection.DESC)
    assert desc == list(reversed(asc))
    assert [c.current_price for c in asc] == [1.0, 450.0, 3500.0, 67000.0, 67000.0]


def test_ties_keep_snapshot_order(coins):
    asc = compute_view(coins, "", SortKey.CURRENT_PRICE, SortDirection.ASC)
    # bitcoin precedes wrapped-bitcoin in the snapshot and both cost 67000
    assert _ids(asc)[-2:] == ["bitcoin", "wrapped-bitcoin"]

    by_change = compute_view(coins, "", SortKey.PRICE_CHANGE_PERCENTAGE_24H)
    assert _ids(by_change)[:2] == ["ethereum", "bitcoin-cash"]


def test_string_sort_uses_collation(coins):
    result = compute_view(coins, "", SortKey.NAME, SortDirection.ASC)
    assert [c.name for c in result] == ["Bitcoin", "Bitcoin Cash", "Ethereum", "Tether", "Wrapped Bitcoin"]


def test_default_sort_is_rank_ascending(coins):
    assert [c.market_cap_rank for c in compute_view(coins)] == [1, 2, 3, 15, 18]


def test_missing_rank_orders_last():
    coins = [
        make_coin("new", "new", "Newcoin", 0.5, None),
        make_coin("bitcoin", "btc", "Bitcoin", 67000.0, 1),
    ]
    assert _ids(compute_view(coins, "", "market_cap_rank", "asc")) == ["bitcoin", "new"]
    assert _ids(compute_view(coins, "", "market_cap_rank", "desc")) == ["new", "bitcoin"]


def test_compute_view_is_pure(coins):
    snapshot = list(coins)
    first = compute_view(snapshot, "bit", SortKey.MARKET_CAP, SortDirection.DESC)
    second = compute_view(snapshot, "bit", SortKey.MARKET_CAP, SortDirection.DESC)
    assert first == second
    assert snapshot == coins


def test_rejects_unknown_sort_key(coins):
    with pytest.raises(ValueError):
        compute_view(coins, "", "sparkline")


@pytest.mark.parametrize(
    "a,b,expected",
    [
        (1, 2, -1),
        (2.5, 2.5, 0),
        (3, 1.5, 1),
        ("abc", "abd", -1),
        (None, 1, 1),
        (1, None, -1),
        (None, None, 0),
    ],
)
def test_compare_values(a, b, expected):
    assert compare_values(a, b) == expected


def test_string_sort_ignores_case():
    coins = [
        make_coin("zcash", "zec", "Zcash", 30.0, 90),
        make_coin("dogwifhat", "wif", "dogwifhat", 2.0, 60),
        make_coin("aave", "aave", "Aave", 90.0, 40),
        make_coin("ethena", "ENA", "ethena", 0.5, 70),
    ]
    asc = compute_view(coins, "", SortKey.NAME, SortDirection.ASC)
    assert [c.name for c in asc] == ["Aave", "dogwifhat", "ethena", "Zcash"]

    by_symbol = compute_view(coins, "", SortKey.SYMBOL, SortDirection.ASC)
    assert [c.symbol for c in by_symbol] == ["aave", "ENA", "wif", "zec"]


def test_case_only_difference_is_still_ordered():
    assert compare_values("bitcoin", "Bitcoin") != 0
    assert compare_values("bitcoin", "Bitcoin") == -compare_values("Bitcoin", "bitcoin")
