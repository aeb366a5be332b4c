from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from arbscope.config.settings import settings
from arbscope.connectors.demo import DEMO_PAIRS, fetch_demo_book
from arbscope.connectors.polymarket import PolymarketClient, normalize_order_book
from arbscope.core.arb import calculate_arbitrage
from arbscope.core.models import ArbitrageOpportunity, CorrelatedPair, CorrelationType, MarketOrderBook
from arbscope.utils.logging import get_logger
from arbscope.utils.validation import ValidationError, validate_order_book


logger = get_logger("main")

# (yes token id, label, optional no token id) -> normalized book or None
BookFetcher = Callable[[str, str, Optional[str]], Awaitable[Optional[MarketOrderBook]]]


async def fetch_demo_market_book(market_id: str, label: str, no_token_id: Optional[str] = None) -> Optional[MarketOrderBook]:
    raw = await fetch_demo_book(market_id)
    if raw is None:
        return None
    return normalize_order_book(raw, market_id, label)


def load_pairs(path: str | Path) -> List[CorrelatedPair]:
    """Read correlated pairs from a JSON list of objects.

    Each object needs market1_id, market2_id and correlation_type; labels and
    NO token ids are optional.
    """
    rows = json.loads(Path(path).read_text())
    pairs: List[CorrelatedPair] = []
    for row in rows:
        pairs.append(
            CorrelatedPair(
                market1_id=str(row["market1_id"]),
                market1_label=row.get("market1_label") or str(row["market1_id"]),
                market2_id=str(row["market2_id"]),
                market2_label=row.get("market2_label") or str(row["market2_id"]),
                correlation_type=CorrelationType.parse(row.get("correlation_type", "SAME")),
                market1_no_token=row.get("market1_no_token"),
                market2_no_token=row.get("market2_no_token"),
            )
        )
    return pairs


async def evaluate_pair(pair: CorrelatedPair, fetch_book: BookFetcher) -> Optional[ArbitrageOpportunity]:
    try:
        book1, book2 = await asyncio.gather(
            fetch_book(pair.market1_id, pair.market1_label, pair.market1_no_token),
            fetch_book(pair.market2_id, pair.market2_label, pair.market2_no_token),
        )
    except Exception:  # noqa: BLE001
        logger.exception("Skipping %s / %s: order book fetch failed", pair.market1_id, pair.market2_id)
        return None

    if book1 is None or book2 is None:
        logger.warning("Skipping %s / %s: order book unavailable", pair.market1_id, pair.market2_id)
        return None

    try:
        validate_order_book(book1)
        validate_order_book(book2)
    except ValidationError as exc:
        logger.warning("Skipping %s / %s: %s", pair.market1_id, pair.market2_id, exc)
        return None

    return calculate_arbitrage(book1, book2, pair.correlation_type)


async def scan_pairs(
    pairs: List[CorrelatedPair],
    fetch_book: BookFetcher,
    concurrency: Optional[int] = None,
) -> List[ArbitrageOpportunity]:
    """Evaluate every pair, fetching books with bounded concurrency.

    Returns opportunities sorted by profit at 100 shares, best first.
    """
    sem = asyncio.Semaphore(concurrency or settings.fetch.concurrency)

    async def bounded_fetch(market_id: str, label: str, no_token_id: Optional[str]) -> Optional[MarketOrderBook]:
        async with sem:
            return await fetch_book(market_id, label, no_token_id)

    results = await asyncio.gather(*[evaluate_pair(p, bounded_fetch) for p in pairs])
    opportunities = [r for r in results if r is not None]
    opportunities.sort(key=lambda o: o.profit_at_100_shares, reverse=True)
    return opportunities


def _log_opportunities(opportunities: List[ArbitrageOpportunity]) -> None:
    for opp in opportunities:
        strat = opp.execution_strategy
        logger.info(
            "%s <-> %s | buy %s@%s %.3f, sell %s@%s %.3f | p100=$%.2f p1000=$%.2f max=%d shares slip=%.2f%% conf=%.2f",
            opp.market1_question,
            opp.market2_question,
            strat.buy_outcome,
            strat.buy_market,
            strat.buy_price,
            strat.sell_outcome,
            strat.sell_market,
            strat.sell_price,
            opp.profit_at_100_shares,
            opp.profit_at_1000_shares,
            opp.max_profitable_shares,
            opp.slippage_risk,
            opp.confidence,
        )


async def run_once() -> int:
    opportunities = await scan_pairs(DEMO_PAIRS, fetch_demo_market_book)
    if not opportunities:
        logger.info("No opportunities found.")
        return 0

    logger.info("Found %d opportunities", len(opportunities))
    _log_opportunities(opportunities)
    return len(opportunities)


async def run_live_once(pairs_file: str) -> int:
    pairs = load_pairs(pairs_file)
    client = PolymarketClient()
    try:
        opportunities = await scan_pairs(pairs, client.fetch_market_book)
    finally:
        await client.close()

    if not opportunities:
        logger.info("No opportunities found across %d pairs.", len(pairs))
        return 0
    logger.info("Found %d opportunities across %d pairs", len(opportunities), len(pairs))
    _log_opportunities(opportunities)
    return len(opportunities)


def cli():
    live = os.environ.get("LIVE", "0") in {"1", "true", "TRUE", "yes"}
    if live:
        pairs_file = os.environ.get("ARBSCOPE_PAIRS_FILE", "pairs.json")
        asyncio.run(run_live_once(pairs_file))
    else:
        asyncio.run(run_once())


if __name__ == "__main__":
    cli()
