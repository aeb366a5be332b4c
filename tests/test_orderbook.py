import pytest

from arbscope.core.models import LevelFill, MarketOrderBook, OrderLevel, OutcomeOrderBook
from arbscope.core.orderbook import get_top_of_book, simulate_execution, simulate_fill, simulate_partial_fill


def _levels(*pairs):
    return [OrderLevel(price=p, size=s) for p, s in pairs]


def test_buy_walk_fills_across_levels_and_conserves_notional():
    asks = _levels((0.40, 100), (0.45, 50), (0.50, 200))
    summary = simulate_fill(asks, 200, "BUY")

    assert summary.filled_size == 200
    assert summary.levels_used == [LevelFill(0.40, 100), LevelFill(0.45, 50), LevelFill(0.50, 50)]
    assert summary.total_notional == sum(l.price * l.size for l in summary.levels_used)
    assert summary.average_price == pytest.approx(0.4375)
    assert summary.slippage_pct == pytest.approx((0.4375 - 0.40) / 0.40)


def test_sell_walk_sorts_bids_and_reports_adverse_slippage_as_positive():
    bids = _levels((0.55, 50), (0.60, 50))
    summary = simulate_fill(bids, 80, "SELL")

    assert summary.levels_used[0] == LevelFill(0.60, 50)
    assert summary.average_price == pytest.approx(46.5 / 80)
    assert summary.slippage_pct == pytest.approx((0.60 - 46.5 / 80) / 0.60)
    assert summary.slippage_pct > 0


def test_unsorted_asks_are_walked_cheapest_first():
    summary = simulate_fill(_levels((0.50, 10), (0.40, 10)), 10, "BUY")
    assert summary.average_price == pytest.approx(0.40)
    assert summary.slippage_pct == 0


def test_thin_book_overflow_is_priced_at_worst_level():
    summary = simulate_fill(_levels((0.50, 10)), 100, "BUY")

    assert summary.filled_size == 100
    assert summary.average_price == 0.50
    assert summary.levels_used == [LevelFill(0.50, 10), LevelFill(0.50, 90)]


def test_overflow_uses_last_level_price_not_best():
    summary = simulate_fill(_levels((0.5, 10), (0.25, 10)), 40, "SELL")
    # 10 @ 0.5, 10 @ 0.25, remaining 20 @ 0.25
    assert summary.filled_size == 40
    assert summary.total_notional == 5.0 + 2.5 + 5.0


def test_empty_side_fills_at_one_for_buys_and_zero_for_sells():
    buy = simulate_fill([], 10, "BUY")
    sell = simulate_fill([], 10, "SELL")

    assert buy.filled_size == 10 and buy.average_price == 1.0
    assert sell.filled_size == 10 and sell.average_price == 0.0
    assert buy.slippage_pct is None and sell.slippage_pct is None


def test_zero_size_returns_empty_summary():
    summary = simulate_fill(_levels((0.4, 10)), 0, "BUY")
    assert summary.filled_size == 0
    assert summary.average_price is None
    assert summary.levels_used == []


def _market(yes_bids=(), yes_asks=(), no_bids=(), no_asks=()):
    return MarketOrderBook(
        id="m",
        label="Market",
        yes=OutcomeOrderBook(bids=_levels(*yes_bids), asks=_levels(*yes_asks)),
        no=OutcomeOrderBook(bids=_levels(*no_bids), asks=_levels(*no_asks)),
    )


def test_top_of_book():
    book = _market(yes_bids=[(0.45, 10), (0.40, 5)], yes_asks=[(0.50, 10)])
    top = get_top_of_book(book, "YES")

    assert top.best_bid == 0.45
    assert top.best_ask == 0.50
    assert top.spread == pytest.approx(0.05)
    assert top.midpoint == pytest.approx(0.475)


def test_top_of_book_with_one_empty_side_has_no_spread():
    top = get_top_of_book(_market(yes_bids=[(0.45, 10)]), "YES")
    assert top.best_bid == 0.45
    assert top.best_ask is None
    assert top.spread is None and top.midpoint is None


def test_simulate_execution_allows_partial_fills():
    book = _market(yes_bids=[(0.38, 20)], yes_asks=[(0.40, 10)])
    summary = simulate_execution(book, "YES", "BUY", 50)

    assert summary.filled_size == 10
    assert summary.average_price == pytest.approx(0.40)
    assert summary.outcome == "YES"
    assert summary.top.best_bid == 0.38


def test_simulate_execution_on_empty_side_fills_nothing():
    summary = simulate_execution(_market(), "NO", "SELL", 25)
    assert summary.filled_size == 0
    assert summary.average_price is None
    assert summary.top.best_bid is None


def test_simulate_partial_fill_stops_at_resting_depth():
    summary = simulate_partial_fill(_levels((0.5, 10), (0.25, 10)), 40, "BUY")
    assert summary.filled_size == 20
    assert summary.total_notional == 7.5
    assert summary.levels_used == [LevelFill(0.25, 10), LevelFill(0.5, 10)]
