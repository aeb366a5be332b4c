"""Payoff profiles for a single binary-market position.

Prices are probabilities in [0, 1]; one contract pays $1 if its outcome
resolves true and $0 otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from arbscope.core.models import Outcome, TradeSide


@dataclass(frozen=True)
class PayoffSummary:
    side: TradeSide
    outcome: Outcome
    size: float
    price: float
    max_gain: float
    max_loss: float
    capital_at_risk: float
    breakeven_price: float
    resolution_pnl_yes: float
    resolution_pnl_no: float


@dataclass(frozen=True)
class MtmScenario:
    id: str
    label: str
    description: str
    prices: List[float]
    pnls: List[float]


def _clamp(price: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, price))


def calculate_payoff(side: TradeSide, outcome: Outcome, size: float, price: float) -> PayoffSummary:
    """Resolution P&L of buying or selling `size` contracts of `outcome` at `price`.

    Example:
        calculate_payoff("BUY", "YES", 100, 0.40)
        # pays $40, gains $60 if YES resolves, loses $40 if NO resolves
    """
    price = _clamp(price)
    pays_if_yes = 1.0 if outcome == "YES" else 0.0
    pays_if_no = 1.0 if outcome == "NO" else 0.0

    if side == "BUY":
        total_cost = size * price
        capital_at_risk = total_cost
        pnl_yes = size * pays_if_yes - total_cost
        pnl_no = size * pays_if_no - total_cost
    else:
        # A short must post the remaining (1 - price) per contract
        capital_at_risk = size * (1 - price)
        pnl_yes = size * (price - pays_if_yes)
        pnl_no = size * (price - pays_if_no)

    return PayoffSummary(
        side=side,
        outcome=outcome,
        size=size,
        price=price,
        max_gain=max(pnl_yes, pnl_no),
        max_loss=min(pnl_yes, pnl_no),
        capital_at_risk=capital_at_risk,
        breakeven_price=price if outcome == "YES" else 1 - price,
        resolution_pnl_yes=pnl_yes,
        resolution_pnl_no=pnl_no,
    )


def generate_mtm_scenarios(side: TradeSide, outcome: Outcome, size: float, entry_price: float) -> List[MtmScenario]:
    """Three illustrative mark-to-market paths from entry to resolution.

    Paths are expressed in YES-price terms and mapped to the position's outcome.
    """
    base = _clamp(entry_price, 0.05, 0.95)

    good_path = [_clamp(p) for p in (base, base + 0.1, base + 0.2, base + 0.25, 1.0)]
    bad_path = [_clamp(p) for p in (base, base - 0.1, base - 0.2, base - 0.25, 0.0)]
    noisy_path = [_clamp(p) for p in (base, base + 0.08, base - 0.12, base + 0.05, base)]

    def path_pnl(path: List[float]) -> List[float]:
        pnls = []
        for mark in path:
            implied = mark if outcome == "YES" else 1 - mark
            if side == "BUY":
                pnls.append(size * (implied - entry_price))
            else:
                pnls.append(size * (entry_price - implied))
        return pnls

    return [
        MtmScenario(
            id="early-good",
            label="Early good news",
            description="Price moves in your favor early and then stabilizes.",
            prices=good_path,
            pnls=path_pnl(good_path),
        ),
        MtmScenario(
            id="early-bad",
            label="Early bad news",
            description="Price moves against you early and stays weak.",
            prices=bad_path,
            pnls=path_pnl(bad_path),
        ),
        MtmScenario(
            id="noisy-middle",
            label="Noisy middle",
            description="Price oscillates before resolution with no clear trend.",
            prices=noisy_path,
            pnls=path_pnl(noisy_path),
        ),
    ]
