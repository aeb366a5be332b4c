"""Correlation detection between prediction markets.

Decides whether two markets' outcomes are linked and, if so, whether their
YES outcomes resolve together (SAME) or one's YES implies the other's NO
(OPPOSITE). Two strategies are provided:
- `detect_correlation`: fast keyword heuristics, no network
- `classify_pairs_openai`: an OpenAI chat model, cached on disk per model
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from arbscope.config.constants import MIN_LLM_CORRELATION_CONFIDENCE
from arbscope.config.settings import settings
from arbscope.core.models import CorrelationType, InvalidCorrelationError
from arbscope.utils.logging import get_logger


logger = get_logger("correlation")

RelationKind = Literal["CAUSAL", "LOGICAL", "TEMPORAL"]

ENTITIES = ["trump", "biden", "harris", "desantis", "newsom", "bitcoin", "ethereum", "fed", "powell"]
TOPICS = ["bitcoin", "ethereum", "trump", "election", "fed", "inflation", "gdp", "unemployment"]
DATE_PATTERN = re.compile(
    r"\b(2024|2025|2026|2027|2028|january|february|march|april|may|june|july|august|"
    r"september|october|november|december|q1|q2|q3|q4)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class MarketCandidate:
    id: str
    question: str
    platform: str = "POLYMARKET"
    category: str = ""
    description: Optional[str] = None


@dataclass(frozen=True)
class MarketCorrelation:
    market1: MarketCandidate
    market2: MarketCandidate
    relation: RelationKind
    confidence: float
    reasoning: str
    alignment: CorrelationType


def _has_any(text: str, words: Iterable[str]) -> bool:
    return any(w in text for w in words)


def _rule(q1: str, q2: str) -> Optional[Tuple[RelationKind, float, str]]:
    # Running mate is elected with the president
    if ("trump" in q1 and "vance" in q2) or ("vance" in q1 and "trump" in q2):
        if _has_any(q1, ("win", "president", "election")) and _has_any(q2, ("win", "president", "vp", "vice")):
            return "CAUSAL", 0.95, "If Trump wins, JD Vance becomes VP automatically. These outcomes are directly linked."

    for entity in ENTITIES:
        if entity in q1 and entity in q2:
            both_winning = _has_any(q1, ("win",)) and _has_any(q2, ("win",))
            both_price = _has_any(q1, ("price", "$")) and _has_any(q2, ("price", "$"))
            if both_winning or both_price:
                return "LOGICAL", 0.8, f"Both markets involve {entity} and similar outcome types, suggesting correlation."

    if _has_any(q1, ("fed", "powell")) and _has_any(q2, ("rate", "interest")):
        return "CAUSAL", 0.75, "Fed Chair Powell's decisions directly impact interest rates."

    if ("bitcoin" in q1 and "microstrategy" in q2) or ("microstrategy" in q1 and "bitcoin" in q2):
        return "CAUSAL", 0.85, "MicroStrategy holds significant Bitcoin, so their performance is correlated."

    if ("president" in q1 and _has_any(q2, ("senate", "house"))) or (
        "president" in q2 and _has_any(q1, ("senate", "house"))
    ):
        return "LOGICAL", 0.7, "Presidential outcomes often correlate with congressional control."

    dates1 = {d.lower() for d in DATE_PATTERN.findall(q1)}
    dates2 = {d.lower() for d in DATE_PATTERN.findall(q2)}
    if dates1 & dates2:
        shared = next((t for t in TOPICS if t in q1 and t in q2), None)
        if shared:
            return "TEMPORAL", 0.65, f"Both markets share {shared} topic and similar timeframe."

    return None


def detect_correlation(market1: MarketCandidate, market2: MarketCandidate) -> Optional[MarketCorrelation]:
    """Keyword heuristics; every rule currently implies SAME alignment."""
    if market1.id == market2.id:
        return None

    hit = _rule(market1.question.lower(), market2.question.lower())
    if hit is None:
        return None

    relation, confidence, reasoning = hit
    return MarketCorrelation(
        market1=market1,
        market2=market2,
        relation=relation,
        confidence=confidence,
        reasoning=reasoning,
        alignment=CorrelationType.SAME,
    )


def find_correlated_markets(markets: List[MarketCandidate]) -> List[MarketCorrelation]:
    """All heuristically correlated pairs, most confident first."""
    logger.info("Analyzing %d markets for correlations (rule-based)", len(markets))
    found: List[MarketCorrelation] = []
    for a, b in combinations(markets, 2):
        correlation = detect_correlation(a, b)
        if correlation is not None:
            found.append(correlation)
    logger.info("Found %d potential correlations", len(found))
    return sorted(found, key=lambda c: c.confidence, reverse=True)


def _cache_path(model: str) -> Path:
    base = Path(os.getenv("ARBSCOPE_CACHE_DIR") or Path.home() / ".cache" / "arbscope")
    base.mkdir(parents=True, exist_ok=True)
    return base / f"correlation_{model.replace('/', '_')}.json"


def _load_cache(model: str) -> Dict[str, dict]:
    path = _cache_path(model)
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable correlation cache %s: %s", path, exc)
        return {}


def _save_cache(model: str, data: Dict[str, dict]) -> None:
    try:
        _cache_path(model).write_text(json.dumps(data))
    except OSError as exc:
        logger.warning("Could not write correlation cache: %s", exc)


def _key(a: MarketCandidate, b: MarketCandidate) -> str:
    return f"{a.question.strip()}|||{b.question.strip()}"


def _to_correlation(a: MarketCandidate, b: MarketCandidate, row: dict) -> Optional[MarketCorrelation]:
    if not row.get("is_correlated"):
        return None
    try:
        confidence = float(row.get("confidence") or 0.0)
    except (TypeError, ValueError):
        logger.warning("Model returned non-numeric confidence %r for %s / %s", row.get("confidence"), a.id, b.id)
        return None
    # NaN fails this comparison too
    if not confidence >= MIN_LLM_CORRELATION_CONFIDENCE:
        return None
    try:
        alignment = CorrelationType.parse(row.get("alignment") or "SAME")
    except InvalidCorrelationError:
        logger.warning("Model returned unknown alignment %r for %s / %s", row.get("alignment"), a.id, b.id)
        return None
    relation = row.get("relation") if row.get("relation") in ("CAUSAL", "LOGICAL", "TEMPORAL") else "LOGICAL"
    return MarketCorrelation(
        market1=a,
        market2=b,
        relation=relation,
        confidence=confidence,
        reasoning=str(row.get("reasoning") or "Markets appear to be correlated."),
        alignment=alignment,
    )


def classify_pairs_openai(
    pairs: List[Tuple[MarketCandidate, MarketCandidate]],
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    use_cache: bool = True,
    client=None,
) -> Dict[Tuple[str, str], Optional[MarketCorrelation]]:
    """Ask an OpenAI chat model whether each pair is correlated, and how.

    Returns a mapping (market1.id, market2.id) -> MarketCorrelation, or None
    for pairs judged uncorrelated or below the confidence floor. Raw model
    answers are cached by exact question text and model.
    """
    model = model or settings.openai_model
    if client is None:
        from openai import OpenAI

        client = OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
        )

    cache = _load_cache(model) if use_cache else {}
    rows: Dict[str, dict] = {}
    to_query: List[Tuple[MarketCandidate, MarketCandidate]] = []
    for a, b in pairs:
        k = _key(a, b)
        if use_cache and k in cache:
            rows[k] = cache[k]
        else:
            to_query.append((a, b))

    if to_query:
        items = [
            {"id": i, "market1": a.question, "market2": b.question, "category1": a.category, "category2": b.category}
            for i, (a, b) in enumerate(to_query)
        ]
        system = (
            "You are an expert financial analyst specializing in prediction markets."
            " For each pair decide whether the two binary markets have linked outcomes."
            " alignment is SAME if both YES outcomes resolve together, OPPOSITE if market1 YES implies market2 NO."
            " Reply with strict JSON: {results: [{id, is_correlated, relation, confidence, reasoning, alignment}]}"
            " where relation is CAUSAL, LOGICAL or TEMPORAL and confidence is between 0 and 1."
        )
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": f"Pairs: {json.dumps(items)}"},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        text = resp.choices[0].message.content or "{}"
        try:
            answers = json.loads(text).get("results") or []
        except (ValueError, AttributeError):
            logger.warning("Could not parse correlation response from %s", model)
            answers = []
        by_id = {r.get("id"): r for r in answers if isinstance(r, dict)}
        for i, (a, b) in enumerate(to_query):
            row = by_id.get(i) or {"is_correlated": False, "reasoning": "parse_error"}
            rows[_key(a, b)] = row
            if use_cache:
                cache[_key(a, b)] = row
        if use_cache:
            _save_cache(model, cache)

    return {(a.id, b.id): _to_correlation(a, b, rows[_key(a, b)]) for a, b in pairs}
