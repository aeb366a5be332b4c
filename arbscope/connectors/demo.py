from __future__ import annotations

import random
from typing import Dict, List, Optional

from arbscope.core.models import CorrelatedPair, CorrelationType


# (market id, label, YES mid price)
MARKETS = [
    ("demo-trump-win", "Will Trump win the 2028 election?", 0.42),
    ("demo-vance-vp", "Will JD Vance be VP in 2029?", 0.49),
    ("demo-fed-cut", "Will the Fed cut rates in Dec 2026?", 0.61),
    ("demo-rates-hold", "Will rates stay above 4% through Dec 2026?", 0.33),
    ("demo-btc-100k", "BTC to close > $100k in 2026?", 0.55),
    ("demo-mstr-ath", "MicroStrategy stock at all-time high in 2026?", 0.52),
]

DEMO_PAIRS: List[CorrelatedPair] = [
    CorrelatedPair("demo-trump-win", "Will Trump win the 2028 election?", "demo-vance-vp", "Will JD Vance be VP in 2029?", CorrelationType.SAME),
    CorrelatedPair("demo-fed-cut", "Will the Fed cut rates in Dec 2026?", "demo-rates-hold", "Will rates stay above 4% through Dec 2026?", CorrelationType.OPPOSITE),
    CorrelatedPair("demo-btc-100k", "BTC to close > $100k in 2026?", "demo-mstr-ath", "MicroStrategy stock at all-time high in 2026?", CorrelationType.SAME),
]


def _clip_price(p: float) -> float:
    return round(max(0.01, min(0.99, p)), 3)


def _side(rng: random.Random, mid: float, half_spread: float, levels: int) -> Dict[str, List[dict]]:
    bids, asks = [], []
    for i in range(levels):
        tick = 0.01 * i
        bids.append({"price": str(_clip_price(mid - half_spread - tick)), "size": f"{rng.uniform(50, 600):.0f}"})
        asks.append({"price": str(_clip_price(mid + half_spread + tick)), "size": f"{rng.uniform(50, 600):.0f}"})
    return {"bids": bids, "asks": asks}


def generate_demo_book(market_id: str, yes_mid: float, seed: Optional[int] = None, levels: int = 8) -> dict:
    """Raw two-outcome book payload around `yes_mid`, reproducible for a given seed."""
    rng = random.Random(seed if seed is not None else market_id)
    half_spread = rng.uniform(0.005, 0.02)
    return {
        "yes": _side(rng, yes_mid, half_spread, levels),
        "no": _side(rng, 1 - yes_mid, half_spread, levels),
    }


async def fetch_demo_book(market_id: str, seed: Optional[int] = None) -> Optional[dict]:
    for known_id, _, yes_mid in MARKETS:
        if known_id == market_id:
            return generate_demo_book(market_id, yes_mid, seed=seed)
    return None
