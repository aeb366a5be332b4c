import json
from types import SimpleNamespace

from arbscope.core.models import CorrelationType
from arbscope.utils.correlation import (
    MarketCandidate,
    classify_pairs_openai,
    detect_correlation,
    find_correlated_markets,
)


TRUMP = MarketCandidate("m-trump", "Will Trump win the 2028 election?", category="politics")
VANCE = MarketCandidate("m-vance", "Will JD Vance be VP in 2029?", category="politics")
FED = MarketCandidate("m-fed", "Will the Fed cut rates in Dec 2026?")
RATES = MarketCandidate("m-rates", "Will rates stay above 4% through Dec 2026?")
BTC = MarketCandidate("m-btc", "Will Bitcoin hit $150k?")
MSTR = MarketCandidate("m-mstr", "Will MicroStrategy stock rise?")
RAIN = MarketCandidate("m-rain", "Will it rain in London tomorrow?")


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def _fake_client(results):
    completions = FakeCompletions(json.dumps({"results": results}))
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_running_mate_rule():
    c = detect_correlation(TRUMP, VANCE)
    assert c.relation == "CAUSAL"
    assert c.confidence == 0.95
    assert c.alignment == CorrelationType.SAME


def test_fed_rates_rule():
    c = detect_correlation(FED, RATES)
    assert c.relation == "CAUSAL"
    assert c.confidence == 0.75


def test_unrelated_and_identical_markets():
    assert detect_correlation(TRUMP, RAIN) is None
    assert detect_correlation(TRUMP, TRUMP) is None


def test_find_correlated_markets_sorted_by_confidence():
    found = find_correlated_markets([TRUMP, BTC, VANCE, RAIN, MSTR])
    assert [c.confidence for c in found] == [0.95, 0.85]
    assert {found[1].market1.id, found[1].market2.id} == {"m-btc", "m-mstr"}


def test_openai_classification_maps_alignment_and_filters():
    client, completions = _fake_client(
        [
            {"id": 0, "is_correlated": True, "relation": "CAUSAL", "confidence": 0.9, "reasoning": "r", "alignment": "OPPOSITE"},
            {"id": 1, "is_correlated": True, "relation": "LOGICAL", "confidence": 0.3, "alignment": "SAME"},
        ]
    )

    result = classify_pairs_openai([(FED, RATES), (BTC, RAIN)], model="test-model", use_cache=False, client=client)

    assert len(completions.calls) == 1
    assert completions.calls[0]["model"] == "test-model"
    fed_rates = result[("m-fed", "m-rates")]
    assert fed_rates.alignment == CorrelationType.OPPOSITE
    assert fed_rates.confidence == 0.9
    assert result[("m-btc", "m-rain")] is None


def test_openai_unknown_alignment_and_missing_rows_are_uncorrelated():
    client, _ = _fake_client([{"id": 0, "is_correlated": True, "confidence": 0.9, "alignment": "SIDEWAYS"}])
    result = classify_pairs_openai([(FED, RATES), (BTC, MSTR)], model="m", use_cache=False, client=client)
    assert result == {("m-fed", "m-rates"): None, ("m-btc", "m-mstr"): None}


def test_openai_answers_are_cached_on_disk(tmp_path, monkeypatch):
    monkeypatch.setenv("ARBSCOPE_CACHE_DIR", str(tmp_path))
    client, completions = _fake_client(
        [{"id": 0, "is_correlated": True, "relation": "LOGICAL", "confidence": 0.8, "alignment": "SAME"}]
    )

    first = classify_pairs_openai([(TRUMP, VANCE)], model="cached-model", client=client)
    second = classify_pairs_openai([(TRUMP, VANCE)], model="cached-model", client=client)

    assert len(completions.calls) == 1
    assert first == second
    assert (tmp_path / "correlation_cached-model.json").exists()


def test_openai_non_numeric_confidence_is_uncorrelated():
    client, _ = _fake_client(
        [
            {"id": 0, "is_correlated": True, "confidence": "high", "alignment": "SAME"},
            {"id": 1, "is_correlated": True, "confidence": 0.9, "alignment": "SAME"},
        ]
    )
    result = classify_pairs_openai([(FED, RATES), (TRUMP, VANCE)], model="m", use_cache=False, client=client)

    assert result[("m-fed", "m-rates")] is None
    assert result[("m-trump", "m-vance")].confidence == 0.9
