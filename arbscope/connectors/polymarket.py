from __future__ import annotations

import os
import math
from typing import Any, List, Optional

import httpx

from arbscope.config.settings import settings
from arbscope.core.models import MarketOrderBook, OrderLevel, OutcomeOrderBook
from arbscope.core.orderbook import sort_asks, sort_bids
from arbscope.utils.logging import get_logger
from arbscope.utils.retry import retry_with_backoff


logger = get_logger("polymarket")


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_level(raw: Any) -> Optional[OrderLevel]:
    # A level needs both a price and a size
    if isinstance(raw, dict):
        price = _to_float(raw.get("price"))
        size = _to_float(raw.get("size"))
    elif isinstance(raw, (list, tuple)) and len(raw) >= 2:
        price = _to_float(raw[0])
        size = _to_float(raw[1])
    else:
        return None
    if price is None or size is None or math.isnan(price) or math.isnan(size):
        return None
    return OrderLevel(price=price, size=size)


def _parse_levels(raw_levels: Any) -> List[OrderLevel]:
    if not isinstance(raw_levels, list):
        return []
    levels: List[OrderLevel] = []
    for raw in raw_levels:
        level = _parse_level(raw)
        if level is not None:
            levels.append(level)
    return levels


def normalize_order_book(raw: Any, market_id: str, label: str) -> Optional[MarketOrderBook]:
    """Convert a raw order book payload into a sorted `MarketOrderBook`.

    Accepted shapes:
    - {"yes": {"bids": [...], "asks": [...]}, "no": {"bids": [...], "asks": [...]}}
    - {"bids": [...], "asks": [...]} (CLOB token book; treated as the YES side)

    Levels may be {"price": "0.41", "size": "120"} dicts or [price, size] pairs.
    Levels with a missing or unparseable price or size are dropped. Returns
    None if the payload is not a mapping.
    """
    if not isinstance(raw, dict):
        logger.warning("Cannot normalize order book for %s: unexpected payload %s", market_id, type(raw).__name__)
        return None

    yes_bids: List[OrderLevel] = []
    yes_asks: List[OrderLevel] = []
    no_bids: List[OrderLevel] = []
    no_asks: List[OrderLevel] = []

    yes = raw.get("yes")
    if isinstance(yes, dict):
        yes_bids = _parse_levels(yes.get("bids"))
        yes_asks = _parse_levels(yes.get("asks"))

    no = raw.get("no")
    if isinstance(no, dict):
        no_bids = _parse_levels(no.get("bids"))
        no_asks = _parse_levels(no.get("asks"))

    if isinstance(raw.get("bids"), list):
        yes_bids = _parse_levels(raw["bids"])
    if isinstance(raw.get("asks"), list):
        yes_asks = _parse_levels(raw["asks"])

    return MarketOrderBook(
        id=market_id,
        label=label,
        yes=OutcomeOrderBook(bids=sort_bids(yes_bids), asks=sort_asks(yes_asks)),
        no=OutcomeOrderBook(bids=sort_bids(no_bids), asks=sort_asks(no_asks)),
    )


class PolymarketClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url or settings.polymarket.base_url or "https://clob.polymarket.com"
        self.api_key = api_key or settings.polymarket.api_key
        self._client = client or httpx.AsyncClient(timeout=settings.fetch.timeout_seconds)
        self._book_url = os.environ.get("POLYMARKET_BOOK_URL", f"{self.base_url.rstrip('/')}/book")

    async def close(self):
        await self._client.aclose()

    async def _get_book(self, token_id: str) -> dict:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        resp = await self._client.get(self._book_url, params={"token_id": token_id}, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected order book payload for {token_id}: {type(data).__name__}")
        return data

    async def fetch_order_book(self, token_id: str) -> Optional[dict]:
        """Fetch the raw CLOB book for one outcome token.

        Transient failures are retried with backoff; after the last attempt the
        error is logged and None is returned so one bad token does not abort a scan.
        """
        try:
            return await retry_with_backoff(
                self._get_book,
                token_id,
                max_retries=settings.fetch.max_retries,
                initial_delay=settings.fetch.initial_delay,
                exceptions=(httpx.HTTPError, ValueError),
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Polymarket book fetch failed for %s: %s", token_id, exc)
            return None

    async def fetch_market_book(
        self,
        yes_token_id: str,
        label: str,
        no_token_id: str | None = None,
    ) -> Optional[MarketOrderBook]:
        """Fetch and normalize a binary market from its YES (and optional NO) token books."""
        yes_raw = await self.fetch_order_book(yes_token_id)
        if yes_raw is None:
            return None

        raw: dict = {"yes": {"bids": yes_raw.get("bids") or [], "asks": yes_raw.get("asks") or []}}
        if no_token_id:
            no_raw = await self.fetch_order_book(no_token_id)
            if no_raw is None:
                return None
            raw["no"] = {"bids": no_raw.get("bids") or [], "asks": no_raw.get("asks") or []}

        return normalize_order_book(raw, yes_token_id, label)
