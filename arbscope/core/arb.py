"""Execution-aware arbitrage between two correlated binary markets.

This module contains the core logic of the engine. It includes:
- Strategy enumeration from a fixed leg table per correlation type
- Profit evaluation by walking both books (see `arbscope.core.orderbook`)
- Binary search for the largest profitable trade size
- Profit curve sampling and the slippage-risk / confidence metrics

Every function is pure. Profit is always `total_revenue - total_cost` in
dollars over the full size; per-share figures are derived from it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from arbscope.config.constants import (
    CONFIDENCE_DEPTH_LEVELS,
    CONFIDENCE_DEPTH_WEIGHT,
    CONFIDENCE_LIQUIDITY_SHARES,
    CONFIDENCE_LIQUIDITY_WEIGHT,
    CONFIDENCE_PROFIT_USD,
    CONFIDENCE_PROFIT_WEIGHT,
    EMPTY_ASK_PRICE,
    EMPTY_BID_PRICE,
    MAX_SEARCH_SHARES,
    MIN_SEARCH_SHARES,
    PROFIT_CURVE_CHECKPOINTS,
    PROFIT_CURVE_STEPS,
    REFERENCE_SIZE_LARGE,
    REFERENCE_SIZE_SMALL,
)
from arbscope.core.models import (
    ArbitrageOpportunity,
    CandidateStrategy,
    CorrelationType,
    ExecutionStrategy,
    MarketOrderBook,
    Outcome,
    OutcomeOrderBook,
    PriceRange,
    ProfitPoint,
)
from arbscope.core.orderbook import simulate_fill, sort_asks, sort_bids
from arbscope.utils.logging import get_logger


logger = get_logger("arb")


@dataclass(frozen=True)
class Leg:
    """Buy `buy_outcome` in market `buy_market`, sell `sell_outcome` in `sell_market`."""

    buy_market: int
    buy_outcome: Outcome
    sell_market: int
    sell_outcome: Outcome


# Enumeration order doubles as the tie-break order
LEGS: Dict[CorrelationType, Tuple[Leg, ...]] = {
    CorrelationType.SAME: (
        Leg(1, "YES", 2, "YES"),
        Leg(2, "YES", 1, "YES"),
        Leg(1, "NO", 2, "NO"),
        Leg(2, "NO", 1, "NO"),
    ),
    CorrelationType.OPPOSITE: (
        Leg(1, "YES", 2, "NO"),
        Leg(1, "NO", 2, "YES"),
    ),
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def extract_price_range(book: OutcomeOrderBook) -> PriceRange:
    bids = sort_bids(book.bids)
    asks = sort_asks(book.asks)

    best_bid = bids[0].price if bids else EMPTY_BID_PRICE
    best_ask = asks[0].price if asks else EMPTY_ASK_PRICE

    return PriceRange(
        min=best_bid,
        max=best_ask,
        best_bid=best_bid,
        best_ask=best_ask,
        midpoint=(best_bid + best_ask) / 2,
        spread=best_ask - best_bid,
        bids=bids,
        asks=asks,
    )


def calculate_profit(buy_range: PriceRange, sell_range: PriceRange, shares: int) -> ProfitPoint:
    """Profit of buying `shares` on the buy leg and selling them on the sell leg."""
    buy = simulate_fill(buy_range.asks, shares, "BUY")
    sell = simulate_fill(sell_range.bids, shares, "SELL")

    total_cost = buy.total_notional
    total_revenue = sell.total_notional
    profit = total_revenue - total_cost

    return ProfitPoint(
        shares=shares,
        buy_price=total_cost / shares,
        sell_price=total_revenue / shares,
        total_cost=total_cost,
        total_revenue=total_revenue,
        profit=profit,
        profit_per_share=profit / shares,
    )


def find_max_profitable_shares(buy_range: PriceRange, sell_range: PriceRange) -> int:
    """Largest searched size in [1, 100000] whose full-walk profit is positive.

    Assumes profit declines monotonically past the optimum; a local bump in a
    thin book can make the answer smaller than the true maximum.
    """
    low, high = MIN_SEARCH_SHARES, MAX_SEARCH_SHARES
    max_profitable = 0

    while low <= high:
        mid = (low + high) // 2
        if calculate_profit(buy_range, sell_range, mid).profit > 0:
            max_profitable = mid
            low = mid + 1
        else:
            high = mid - 1

    return max_profitable


def generate_profit_curve(buy_range: PriceRange, sell_range: PriceRange, max_shares: int) -> List[ProfitPoint]:
    step = max(1, max_shares // PROFIT_CURVE_STEPS)
    sizes = set(range(step, max_shares + 1, step))
    sizes.update(s for s in PROFIT_CURVE_CHECKPOINTS if s <= max_shares)
    return [calculate_profit(buy_range, sell_range, shares) for shares in sorted(sizes)]


def calculate_slippage_risk(buy_range: PriceRange, sell_range: PriceRange) -> float:
    """Book-shape slippage in percent: depth-average vs top of book on both legs."""
    avg_buy = sum(a.price for a in buy_range.asks) / max(len(buy_range.asks), 1)
    avg_sell = sum(b.price for b in sell_range.bids) / max(len(sell_range.bids), 1)

    buy_slippage = avg_buy - buy_range.best_ask
    sell_slippage = sell_range.best_bid - avg_sell

    return _round_half_up((buy_slippage + sell_slippage) * 10000) / 100


def calculate_confidence(
    max_shares: int,
    profit_at_100: float,
    market1: MarketOrderBook,
    market2: MarketOrderBook,
) -> float:
    liquidity_score = min(max_shares / CONFIDENCE_LIQUIDITY_SHARES, 1)
    profit_score = min(profit_at_100 / CONFIDENCE_PROFIT_USD, 1)
    depth_score = min((market1.yes.depth + market2.yes.depth) / CONFIDENCE_DEPTH_LEVELS, 1)

    score = (
        liquidity_score * CONFIDENCE_LIQUIDITY_WEIGHT
        + profit_score * CONFIDENCE_PROFIT_WEIGHT
        + depth_score * CONFIDENCE_DEPTH_WEIGHT
    )
    return _round_half_up(score * 100) / 100


def find_arbitrage_strategies(
    market1: MarketOrderBook,
    market2: MarketOrderBook,
    correlation_type: CorrelationType | str,
    ranges: Optional[Dict[Tuple[int, Outcome], PriceRange]] = None,
) -> List[CandidateStrategy]:
    """Evaluate every leg allowed by the correlation type that clears top of book.

    A leg is only proposed when the sell side's best bid is strictly above the
    buy side's best ask.
    """
    correlation = CorrelationType.parse(correlation_type)
    markets = {1: market1, 2: market2}
    if ranges is None:
        ranges = {
            (idx, outcome): extract_price_range(m.outcome(outcome))
            for idx, m in markets.items()
            for outcome in ("YES", "NO")
        }

    strategies: List[CandidateStrategy] = []
    for leg in LEGS[correlation]:
        buy_range = ranges[(leg.buy_market, leg.buy_outcome)]
        sell_range = ranges[(leg.sell_market, leg.sell_outcome)]
        if sell_range.best_bid <= buy_range.best_ask:
            continue

        strategies.append(
            CandidateStrategy(
                buy_market=markets[leg.buy_market].id,
                buy_outcome=leg.buy_outcome,
                sell_market=markets[leg.sell_market].id,
                sell_outcome=leg.sell_outcome,
                buy_range=buy_range,
                sell_range=sell_range,
                buy_price=buy_range.best_ask,
                sell_price=sell_range.best_bid,
                max_shares=find_max_profitable_shares(buy_range, sell_range),
                profit_at_100=calculate_profit(buy_range, sell_range, REFERENCE_SIZE_SMALL).profit,
                profit_at_1000=calculate_profit(buy_range, sell_range, REFERENCE_SIZE_LARGE).profit,
            )
        )

    return strategies


def select_best_strategy(strategies: List[CandidateStrategy]) -> Optional[CandidateStrategy]:
    best: Optional[CandidateStrategy] = None
    for strategy in strategies:
        if strategy.profit_at_100 <= 0:
            continue
        # Strict comparison keeps the earliest leg on ties
        if best is None or strategy.profit_at_100 > best.profit_at_100:
            best = strategy
    return best


def calculate_arbitrage(
    market1: MarketOrderBook,
    market2: MarketOrderBook,
    correlation_type: CorrelationType | str,
    now: Optional[datetime] = None,
) -> Optional[ArbitrageOpportunity]:
    """Best executable arbitrage between two correlated markets, or None.

    Raises:
        InvalidCorrelationError: if `correlation_type` is not SAME or OPPOSITE.
    """
    correlation = CorrelationType.parse(correlation_type)

    ranges = {
        (idx, outcome): extract_price_range(m.outcome(outcome))
        for idx, m in ((1, market1), (2, market2))
        for outcome in ("YES", "NO")
    }
    strategies = find_arbitrage_strategies(market1, market2, correlation, ranges=ranges)
    best = select_best_strategy(strategies)
    logger.debug(
        "%s vs %s (%s): %d candidate legs, selected=%s",
        market1.id,
        market2.id,
        correlation.value,
        len(strategies),
        f"buy {best.buy_outcome}@{best.buy_market} sell {best.sell_outcome}@{best.sell_market}" if best else None,
    )
    if best is None:
        return None

    return ArbitrageOpportunity(
        market1_id=market1.id,
        market1_question=market1.label,
        market2_id=market2.id,
        market2_question=market2.label,
        market1_yes_range=ranges[(1, "YES")],
        market1_no_range=ranges[(1, "NO")],
        market2_yes_range=ranges[(2, "YES")],
        market2_no_range=ranges[(2, "NO")],
        buy_price=best.buy_price,
        sell_price=best.sell_price,
        profit_curve=generate_profit_curve(best.buy_range, best.sell_range, best.max_shares),
        max_profitable_shares=best.max_shares,
        profit_at_100_shares=best.profit_at_100,
        profit_at_1000_shares=best.profit_at_1000,
        avg_profit_per_share=best.sell_price - best.buy_price,
        execution_strategy=ExecutionStrategy(
            buy_market=best.buy_market,
            buy_outcome=best.buy_outcome,
            buy_price=best.buy_price,
            sell_market=best.sell_market,
            sell_outcome=best.sell_outcome,
            sell_price=best.sell_price,
        ),
        slippage_risk=calculate_slippage_risk(best.buy_range, best.sell_range),
        confidence=calculate_confidence(best.max_shares, best.profit_at_100, market1, market2),
        correlation_type=correlation,
        timestamp=now or datetime.now(timezone.utc),
    )


@dataclass(frozen=True)
class ExecutionSpreadAnalysis:
    reference_spread: Optional[float]
    execution_spread: Optional[float]
    max_size_with_edge: Optional[float]


def analyze_execution_spread(
    mid_a: Optional[float],
    mid_b: Optional[float],
    execute_a: Callable[[float], Optional[float]],
    execute_b: Callable[[float], Optional[float]],
    max_test_size: float,
    step: float,
) -> ExecutionSpreadAnalysis:
    """Linear scan of the executed spread `price_b - price_a` by size.

    `execute_a` / `execute_b` return the average execution price for a size
    (None when the book cannot fill it). The scan stops at the first size
    without positive edge, so unlike `find_max_profitable_shares` it never
    skips over a loss.

    Raises:
        ValueError: if `step` is not positive.
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    reference_spread = mid_b - mid_a if mid_a is not None and mid_b is not None else None
    execution_spread: Optional[float] = None
    max_size_with_edge: Optional[float] = None

    size = step
    while size <= max_test_size + 1e-9:
        price_a = execute_a(size)
        price_b = execute_b(size)
        if price_a is None or price_b is None:
            break

        spread = price_b - price_a
        if execution_spread is None:
            execution_spread = spread
        if spread <= 0:
            break

        max_size_with_edge = size
        size += step

    return ExecutionSpreadAnalysis(
        reference_spread=reference_spread,
        execution_spread=execution_spread,
        max_size_with_edge=max_size_with_edge,
    )


class ArbitrageEngine:
    """Object facade over the module functions; holds no state."""

    def calculate_arbitrage(
        self,
        market1: MarketOrderBook,
        market2: MarketOrderBook,
        correlation_type: CorrelationType | str,
    ) -> Optional[ArbitrageOpportunity]:
        return calculate_arbitrage(market1, market2, correlation_type)

    def calculate_profit(self, buy_range: PriceRange, sell_range: PriceRange, shares: int) -> ProfitPoint:
        return calculate_profit(buy_range, sell_range, shares)


arbitrage_engine = ArbitrageEngine()
