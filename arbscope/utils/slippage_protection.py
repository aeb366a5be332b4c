"""Slippage estimation utilities for order book depth.

Depth helpers that read resting liquidity only (no must-fill remainder), plus
the LOW/MEDIUM/HIGH slippage classification shown next to a trade size.
"""

import math
from dataclasses import dataclass
from typing import List, Literal, Tuple

from arbscope.config.constants import (
    SLIPPAGE_ASYMMETRY_CENTS,
    SLIPPAGE_LOW_CENTS,
    SLIPPAGE_MEDIUM_CENTS,
)
from arbscope.core.models import OrderLevel, ProfitPoint, TradeSide
from arbscope.core.orderbook import simulate_partial_fill, sort_asks, sort_bids

SlippageLevel = Literal["LOW", "MEDIUM", "HIGH"]


@dataclass(frozen=True)
class SlippageWarning:
    level: SlippageLevel
    message: str
    buy_slippage_cents: float
    sell_slippage_cents: float


def estimate_fill_price(levels: List[OrderLevel], target_size: float, side: TradeSide = "BUY") -> Tuple[float, float]:
    """Average price and notional of filling `target_size` from resting depth only.

    Returns:
        Tuple of (average_price, total_notional); (0.0, 0.0) when nothing fills

    Example:
        asks = [OrderLevel(0.22, 100), OrderLevel(0.23, 200)]
        estimate_fill_price(asks, 250)
        # 100 @ 0.22 + 150 @ 0.23 = 56.50, avg 0.226
    """
    summary = simulate_partial_fill(levels, target_size, side)
    if summary.average_price is None:
        return 0.0, 0.0
    return summary.average_price, summary.total_notional


def calculate_max_size_for_price_impact(
    levels: List[OrderLevel],
    max_price_impact: float = 0.01,
    side: TradeSide = "BUY",
) -> float:
    """Resting size priced within `max_price_impact` (relative) of the best level.

    BUY counts asks up to best * (1 + impact), SELL counts bids down to
    best * (1 - impact).
    """
    if side == "BUY":
        ordered = sort_asks(levels)
        if not ordered:
            return 0.0
        limit = ordered[0].price * (1 + max_price_impact)
        return sum(level.size for level in ordered if level.price <= limit)

    ordered = sort_bids(levels)
    if not ordered:
        return 0.0
    limit = ordered[0].price * (1 - max_price_impact)
    return sum(level.size for level in ordered if level.price >= limit)


def _round_cents(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def calculate_slippage_warning(
    best_buy_price: float,
    avg_buy_execution_price: float,
    best_sell_price: float,
    avg_sell_execution_price: float,
) -> SlippageWarning:
    """Classify execution slippage (in cents per share) on both legs.

    Under 0.5c on the worse leg is LOW, up to 2c MEDIUM, above that HIGH. When
    the legs differ by more than 1c the message names the worse side.
    """
    buy_slip = _round_cents((avg_buy_execution_price - best_buy_price) * 100)
    sell_slip = _round_cents((best_sell_price - avg_sell_execution_price) * 100)

    max_slip = max(buy_slip, sell_slip)
    asymmetric = abs(buy_slip - sell_slip) > SLIPPAGE_ASYMMETRY_CENTS
    worse_side = "buying" if buy_slip > sell_slip else "selling"

    if max_slip < SLIPPAGE_LOW_CENTS:
        level: SlippageLevel = "LOW"
        message = "Price impact is minimal at this size."
    elif max_slip <= SLIPPAGE_MEDIUM_CENTS:
        level = "MEDIUM"
        if asymmetric:
            message = f"Moderate price impact, especially when {worse_side}. Consider smaller size."
        else:
            message = "Moderate price impact at this size. Consider trading smaller."
    else:
        level = "HIGH"
        if asymmetric:
            message = f"Significant price impact when {worse_side}. This may reduce or eliminate profit."
        else:
            message = "Significant price impact at this size. Profit may be reduced or eliminated."

    return SlippageWarning(
        level=level,
        message=message,
        buy_slippage_cents=buy_slip,
        sell_slippage_cents=sell_slip,
    )


def slippage_warning_for_point(point: ProfitPoint, best_buy_price: float, best_sell_price: float) -> SlippageWarning:
    """Slippage warning for one sample of an opportunity's profit curve."""
    return calculate_slippage_warning(
        best_buy_price=best_buy_price,
        avg_buy_execution_price=point.buy_price,
        best_sell_price=best_sell_price,
        avg_sell_execution_price=point.sell_price,
    )
