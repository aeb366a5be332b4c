"""Order book walking and execution simulation.

All functions here are pure: they take immutable book snapshots and return new
values. Levels are re-sorted on every call (asks ascending, bids descending),
so callers may pass books in any order.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from arbscope.config.constants import EMPTY_ASK_PRICE, EMPTY_BID_PRICE
from arbscope.core.models import (
    ExecutionSummary,
    LevelFill,
    MarketOrderBook,
    OrderLevel,
    Outcome,
    TopOfBook,
    TradeSide,
)


def sort_bids(levels: Sequence[OrderLevel]) -> List[OrderLevel]:
    return sorted(levels, key=lambda lvl: lvl.price, reverse=True)


def sort_asks(levels: Sequence[OrderLevel]) -> List[OrderLevel]:
    return sorted(levels, key=lambda lvl: lvl.price)


def get_top_of_book(order_book: MarketOrderBook, outcome: Outcome) -> TopOfBook:
    book = order_book.outcome(outcome)
    best_bid = max((b.price for b in book.bids), default=None)
    best_ask = min((a.price for a in book.asks), default=None)

    if best_bid is None or best_ask is None:
        return TopOfBook(best_bid=best_bid, best_ask=best_ask, spread=None, midpoint=None)

    return TopOfBook(
        best_bid=best_bid,
        best_ask=best_ask,
        spread=best_ask - best_bid,
        midpoint=(best_bid + best_ask) / 2,
    )


def _slippage_pct(side: TradeSide, average_price: Optional[float], best: Optional[float]) -> Optional[float]:
    # Positive means the fill was worse than the top of book
    if average_price is None or best is None or best <= 0:
        return None
    if side == "BUY":
        return (average_price - best) / best
    return (best - average_price) / best


def _walk(
    levels: List[OrderLevel],
    size: float,
    side: TradeSide,
    fill_remainder: bool,
) -> ExecutionSummary:
    best = levels[0].price if levels else None
    if size <= 0:
        return ExecutionSummary(
            side=side,
            requested_size=size,
            filled_size=0.0,
            average_price=None,
            total_notional=0.0,
            slippage_pct=None,
            levels_used=[],
        )

    remaining = size
    filled = 0.0
    notional = 0.0
    used: List[LevelFill] = []

    for level in levels:
        if remaining <= 0:
            break
        if level.size <= 0:
            continue
        take = min(remaining, level.size)
        notional += take * level.price
        filled += take
        remaining -= take
        used.append(LevelFill(price=level.price, size=take))

    if fill_remainder and remaining > 0:
        # Must-fill policy: the rest executes at the worst price available
        if levels:
            worst = levels[-1].price
        else:
            worst = EMPTY_ASK_PRICE if side == "BUY" else EMPTY_BID_PRICE
        notional += remaining * worst
        used.append(LevelFill(price=worst, size=remaining))
        filled = size

    if filled <= 0:
        return ExecutionSummary(
            side=side,
            requested_size=size,
            filled_size=0.0,
            average_price=None,
            total_notional=0.0,
            slippage_pct=None,
            levels_used=[],
        )

    average_price = notional / filled
    return ExecutionSummary(
        side=side,
        requested_size=size,
        filled_size=filled,
        average_price=average_price,
        total_notional=notional,
        slippage_pct=_slippage_pct(side, average_price, best),
        levels_used=used,
    )


def simulate_fill(levels: Sequence[OrderLevel], size: float, side: TradeSide) -> ExecutionSummary:
    """Walk one side of a book for `size` shares, always filling the full size.

    BUY walks asks from the lowest price, SELL walks bids from the highest.
    Any size beyond the resting depth is priced at the worst level, or at 1.0
    (BUY) / 0.0 (SELL) when the side is empty.

    Example:
        asks = [OrderLevel(0.40, 100), OrderLevel(0.45, 50)]
        simulate_fill(asks, 200, "BUY")
        # 100 @ 0.40 + 50 @ 0.45 + 50 @ 0.45 (remainder) = 85.0, avg 0.425
    """
    ordered = sort_asks(levels) if side == "BUY" else sort_bids(levels)
    return _walk(ordered, size, side, fill_remainder=True)


def simulate_partial_fill(levels: Sequence[OrderLevel], size: float, side: TradeSide) -> ExecutionSummary:
    """Walk one side of a book for `size` shares using resting depth only.

    The summary may be a partial fill; `average_price` is None when nothing fills.
    """
    ordered = sort_asks(levels) if side == "BUY" else sort_bids(levels)
    return _walk(ordered, size, side, fill_remainder=False)


def simulate_execution(
    order_book: MarketOrderBook,
    outcome: Outcome,
    side: TradeSide,
    size: float,
) -> ExecutionSummary:
    """Simulate a market order against one outcome of a market book.

    Unlike `simulate_fill`, only resting depth is consumed (see
    `simulate_partial_fill`).
    """
    book = order_book.outcome(outcome)
    top = get_top_of_book(order_book, outcome)
    walk = simulate_partial_fill(book.asks if side == "BUY" else book.bids, size, side)
    return ExecutionSummary(
        side=side,
        requested_size=walk.requested_size,
        filled_size=walk.filled_size,
        average_price=walk.average_price,
        total_notional=walk.total_notional,
        slippage_pct=walk.slippage_pct,
        levels_used=walk.levels_used,
        outcome=outcome,
        top=top,
    )
