"""Implied volatility and overall risk profile for a binary-market trade."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Literal, Optional

RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]
OverallRating = Literal["EXCELLENT", "GOOD", "FAIR", "RISKY"]

MAX_IMPLIED_VOL = 5.0


@dataclass(frozen=True)
class VolatilityResult:
    level: RiskLevel
    implied_vol: float  # annualized sigma
    implied_vol_percent: int
    score: int  # 0-100
    message: str


@dataclass(frozen=True)
class RiskProfile:
    overall: OverallRating
    color: str
    emoji: str
    summary: str
    recommendation: str
    risk_score: int  # 0-10, lower is better
    details: List[str] = field(default_factory=list)


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_volatility(
    option_price: float,
    forward_price: Optional[float] = None,
    time_to_expiry: float = 0.25,
    bid_ask_spread: float = 0.02,
) -> VolatilityResult:
    """Approximate implied volatility of a binary contract.

    sigma ~ sqrt(2*pi / T) * (uncertainty / forward), where uncertainty is the
    distance of the price from certainty (min(p, 1 - p)), plus a spread term.
    Capped at 500% annualized.

    Args:
        option_price: YES price of the market
        forward_price: Expected settlement value; defaults to the larger of p and 1 - p
        time_to_expiry: Years to resolution (default: 3 months)
        bid_ask_spread: Spread as a decimal; wider spreads add volatility
    """
    if forward_price is None:
        forward_price = option_price if option_price > 0.5 else 1 - option_price

    safe_forward = max(forward_price, 0.01)
    safe_time = max(time_to_expiry, 0.01)
    sqrt_term = math.sqrt((2 * math.pi) / safe_time)

    uncertainty = min(option_price, 1 - option_price)
    implied_vol = sqrt_term * (uncertainty / safe_forward)
    implied_vol += bid_ask_spread * sqrt_term * 0.5
    implied_vol = min(max(implied_vol, 0.0), MAX_IMPLIED_VOL)

    vol_percent = _round(implied_vol * 100)
    score = min(100, _round((implied_vol / 2) * 100))

    if vol_percent < 50:
        level: RiskLevel = "LOW"
        message = f"{vol_percent}% implied vol. Price relatively stable."
    elif vol_percent < 150:
        level = "MEDIUM"
        message = f"{vol_percent}% implied vol. Moderate price swings expected."
    else:
        level = "HIGH"
        message = f"{vol_percent}% implied vol. Large price moves possible."

    return VolatilityResult(
        level=level,
        implied_vol=implied_vol,
        implied_vol_percent=vol_percent,
        score=score,
        message=message,
    )


def calculate_risk_profile(
    profit_amount: float,
    slippage_percent: float,
    slippage_level: RiskLevel,
    implied_vol: float,
    volatility_level: RiskLevel,
    max_shares: int,
    current_shares: int,
    spread1: float,
    spread2: float,
) -> RiskProfile:
    """Combine margin, slippage, volatility, size and spreads into one rating."""
    details: List[str] = []
    risk_score = 0

    profit_per_share = profit_amount / current_shares if current_shares > 0 else 0.0
    if profit_per_share > 0.05:
        details.append(f"✓ Strong margin: {profit_per_share * 100:.1f}¢/share")
    elif profit_per_share > 0.02:
        details.append(f"◐ Decent margin: {profit_per_share * 100:.1f}¢/share")
        risk_score += 1
    elif profit_per_share > 0:
        details.append(f"⚠ Thin margin: {profit_per_share * 100:.1f}¢/share")
        risk_score += 2
    else:
        details.append("✗ No profit at this size")
        risk_score += 4

    if slippage_level == "LOW":
        details.append(f"✓ Low slippage: {slippage_percent:.1f}%")
    elif slippage_level == "MEDIUM":
        details.append(f"◐ Moderate slippage: {slippage_percent:.1f}%")
        risk_score += 1
    else:
        details.append(f"✗ High slippage: {slippage_percent:.1f}%")
        risk_score += 3

    vol_percent = _round(implied_vol * 100)
    if volatility_level == "LOW":
        details.append(f"✓ Low volatility: {vol_percent}% IV")
    elif volatility_level == "MEDIUM":
        details.append(f"◐ Moderate volatility: {vol_percent}% IV")
        risk_score += 1
    else:
        details.append(f"⚠ High volatility: {vol_percent}% IV")
        risk_score += 2

    size_ratio = current_shares / max_shares if max_shares > 0 else 1.0
    size_pct = _round(size_ratio * 100)
    if size_ratio < 0.3:
        details.append(f"✓ Size well within limits ({size_pct}% of max)")
    elif size_ratio < 0.7:
        details.append(f"◐ Moderate size ({size_pct}% of max)")
        risk_score += 1
    else:
        details.append(f"⚠ Near max size ({size_pct}% of max)")
        risk_score += 2

    avg_spread = (spread1 + spread2) / 2
    if avg_spread < 0.02:
        details.append(f"✓ Tight spreads: {avg_spread * 100:.1f}%")
    elif avg_spread < 0.05:
        details.append(f"◐ Normal spreads: {avg_spread * 100:.1f}%")
        risk_score += 1
    else:
        details.append(f"⚠ Wide spreads: {avg_spread * 100:.1f}%")
        risk_score += 2

    if risk_score <= 2:
        return RiskProfile(
            overall="EXCELLENT",
            color="emerald",
            emoji="🟢",
            summary="Strong setup with favorable conditions across all metrics",
            recommendation="Good opportunity. Size according to your risk tolerance.",
            risk_score=risk_score,
            details=details,
        )
    if risk_score <= 5:
        return RiskProfile(
            overall="GOOD",
            color="blue",
            emoji="🔵",
            summary="Solid opportunity with acceptable risk levels",
            recommendation="Reasonable trade. Consider staying within suggested size.",
            risk_score=risk_score,
            details=details,
        )
    if risk_score <= 8:
        return RiskProfile(
            overall="FAIR",
            color="yellow",
            emoji="🟡",
            summary="Mixed signals - some risk factors present",
            recommendation="Use smaller size or wait for better entry conditions.",
            risk_score=risk_score,
            details=details,
        )
    return RiskProfile(
        overall="RISKY",
        color="red",
        emoji="🔴",
        summary="Multiple risk factors detected - proceed with caution",
        recommendation="High risk. Consider skipping or using minimal size.",
        risk_score=risk_score,
        details=details,
    )
