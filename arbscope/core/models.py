"""Core data models for order books and arbitrage opportunities.

This module defines the immutable snapshots the engine consumes (order book
levels, per-outcome books, full binary market books) and the values it produces
(execution summaries, profit curve points, arbitrage opportunities).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

Outcome = Literal["YES", "NO"]
TradeSide = Literal["BUY", "SELL"]


class InvalidCorrelationError(ValueError):
    """Raised when a correlation type outside SAME/OPPOSITE reaches the engine."""
    pass


class CorrelationType(str, Enum):
    """How the outcomes of two markets are expected to resolve.

    SAME: the YES outcomes resolve together.
    OPPOSITE: market 1 YES resolves together with market 2 NO.
    """

    SAME = "SAME"
    OPPOSITE = "OPPOSITE"

    @classmethod
    def parse(cls, value: "CorrelationType | str") -> "CorrelationType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidCorrelationError(f"correlation type must be SAME or OPPOSITE, got {value!r}")


@dataclass(frozen=True)
class OrderLevel:
    """Represents a single level in the order book."""
    price: float
    size: float


@dataclass(frozen=True)
class OutcomeOrderBook:
    bids: List[OrderLevel] = field(default_factory=list)  # best (highest) first
    asks: List[OrderLevel] = field(default_factory=list)  # best (lowest) first

    @property
    def depth(self) -> int:
        return len(self.bids) + len(self.asks)


@dataclass(frozen=True)
class MarketOrderBook:
    """Full binary book of one market at a point in time."""

    id: str
    label: str
    yes: OutcomeOrderBook
    no: OutcomeOrderBook
    description: Optional[str] = None
    horizon: Optional[str] = None

    def outcome(self, outcome: Outcome) -> OutcomeOrderBook:
        return self.yes if outcome == "YES" else self.no


@dataclass(frozen=True)
class TopOfBook:
    best_bid: Optional[float]
    best_ask: Optional[float]
    spread: Optional[float]
    midpoint: Optional[float]


@dataclass(frozen=True)
class LevelFill:
    price: float
    size: float


@dataclass(frozen=True)
class ExecutionSummary:
    side: TradeSide
    requested_size: float
    filled_size: float
    average_price: Optional[float]
    total_notional: float
    slippage_pct: Optional[float]
    levels_used: List[LevelFill]
    outcome: Optional[Outcome] = None
    top: Optional[TopOfBook] = None


@dataclass(frozen=True)
class PriceRange:
    """Engine view of one outcome: top of book plus the sorted depth.

    An empty bid side reads as 0 and an empty ask side reads as 1, so that an
    empty side can never pass the bid > ask filter.
    """

    min: float
    max: float
    best_bid: float
    best_ask: float
    midpoint: float
    spread: float
    bids: List[OrderLevel]
    asks: List[OrderLevel]


@dataclass(frozen=True)
class ProfitPoint:
    shares: int
    buy_price: float  # average price per share paid
    sell_price: float  # average price per share received
    total_cost: float
    total_revenue: float
    profit: float
    profit_per_share: float


@dataclass(frozen=True)
class CandidateStrategy:
    buy_market: str
    buy_outcome: Outcome
    sell_market: str
    sell_outcome: Outcome
    buy_range: PriceRange
    sell_range: PriceRange
    buy_price: float
    sell_price: float
    max_shares: int
    profit_at_100: float
    profit_at_1000: float


@dataclass(frozen=True)
class ExecutionStrategy:
    buy_market: str
    buy_outcome: Outcome
    buy_price: float
    sell_market: str
    sell_outcome: Outcome
    sell_price: float


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """Liquidity-bounded strategy for one pair of correlated markets.

    `confidence` is a fixed weighted blend of liquidity, profit and book depth
    scores in [0, 1]. It is a ranking heuristic, not a statistical confidence.
    """

    market1_id: str
    market1_question: str
    market2_id: str
    market2_question: str

    market1_yes_range: PriceRange
    market1_no_range: PriceRange
    market2_yes_range: PriceRange
    market2_no_range: PriceRange

    # Top of book for the chosen legs
    buy_price: float
    sell_price: float

    profit_curve: List[ProfitPoint]

    max_profitable_shares: int
    profit_at_100_shares: float
    profit_at_1000_shares: float
    avg_profit_per_share: float

    execution_strategy: ExecutionStrategy

    slippage_risk: float  # percent
    confidence: float
    correlation_type: CorrelationType
    timestamp: datetime

    def to_dict(self) -> dict:
        data = asdict(self)
        data["correlation_type"] = self.correlation_type.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class CorrelatedPair:
    """Two markets an upstream classifier declared correlated.

    Market ids are the YES outcome token ids; `*_no_token` are optional NO
    outcome tokens used to fill the NO side of each book.
    """

    market1_id: str
    market1_label: str
    market2_id: str
    market2_label: str
    correlation_type: CorrelationType
    market1_no_token: Optional[str] = None
    market2_no_token: Optional[str] = None
