import asyncio

import httpx

from arbscope.config.settings import settings
from arbscope.connectors.demo import fetch_demo_book, generate_demo_book
from arbscope.connectors.polymarket import PolymarketClient, normalize_order_book


def test_normalize_nested_book_sorts_and_parses_strings():
    raw = {
        "yes": {
            "bids": [{"price": "0.40", "size": "10"}, {"price": "0.45", "size": "5"}],
            "asks": [{"price": "0.55", "size": "7"}, {"price": "0.50", "size": "3"}],
        },
        "no": {"bids": [["0.48", "20"]], "asks": [["0.52", 4]]},
    }
    book = normalize_order_book(raw, "m1", "Market 1")

    assert [l.price for l in book.yes.bids] == [0.45, 0.40]
    assert [l.price for l in book.yes.asks] == [0.50, 0.55]
    assert book.no.bids[0].price == 0.48 and book.no.bids[0].size == 20.0
    assert book.no.asks[0].size == 4.0


def test_normalize_flat_book_fills_yes_side():
    book = normalize_order_book({"bids": [{"price": "0.3", "size": "1"}], "asks": []}, "t", "T")
    assert book.yes.bids[0].price == 0.3
    assert book.yes.asks == []
    assert book.no.bids == [] and book.no.asks == []


def test_normalize_drops_unparseable_levels():
    raw = {"yes": {"bids": [{"price": "abc", "size": "1"}, {"price": "nan"}, {"price": "0.2", "size": "3"}]}}
    book = normalize_order_book(raw, "m", "M")
    assert len(book.yes.bids) == 1


def test_normalize_rejects_non_mapping():
    assert normalize_order_book(["not", "a", "book"], "m", "M") is None


def test_fetch_market_book_combines_yes_and_no_tokens():
    books = {
        "yes-token": {"bids": [{"price": "0.41", "size": "100"}], "asks": [{"price": "0.43", "size": "50"}]},
        "no-token": {"bids": [{"price": "0.56", "size": "80"}], "asks": [{"price": "0.59", "size": "90"}]},
    }
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        token = request.url.params["token_id"]
        seen.append(token)
        return httpx.Response(200, json=books[token])

    async def run():
        client = PolymarketClient(
            base_url="https://clob.example",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await client.fetch_market_book("yes-token", "Market", "no-token")
        finally:
            await client.close()

    book = asyncio.run(run())

    assert seen == ["yes-token", "no-token"]
    assert book.id == "yes-token"
    assert book.yes.asks[0].price == 0.43
    assert book.no.bids[0].price == 0.56


def test_fetch_failure_returns_none(monkeypatch):
    monkeypatch.setattr(settings.fetch, "max_retries", 1)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "unavailable"})

    async def run():
        client = PolymarketClient(
            base_url="https://clob.example",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await client.fetch_market_book("yes-token", "Market")
        finally:
            await client.close()

    assert asyncio.run(run()) is None


def test_fetch_retries_transient_errors(monkeypatch):
    monkeypatch.setattr(settings.fetch, "max_retries", 3)
    monkeypatch.setattr(settings.fetch, "initial_delay", 0.0)
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(500)
        return httpx.Response(200, json={"bids": [], "asks": [{"price": "0.6", "size": "10"}]})

    async def run():
        client = PolymarketClient(
            base_url="https://clob.example",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await client.fetch_order_book("tok")
        finally:
            await client.close()

    raw = asyncio.run(run())
    assert calls["n"] == 2
    assert raw["asks"][0]["price"] == "0.6"


def test_demo_books_are_reproducible_and_normalizable():
    assert generate_demo_book("x", 0.5, seed=7) == generate_demo_book("x", 0.5, seed=7)

    raw = asyncio.run(fetch_demo_book("demo-trump-win"))
    book = normalize_order_book(raw, "demo-trump-win", "Trump")
    assert len(book.yes.bids) == 8 and len(book.no.asks) == 8
    assert book.yes.bids[0].price < book.yes.asks[0].price
    assert asyncio.run(fetch_demo_book("unknown")) is None


def test_levels_without_size_are_dropped_in_every_shape():
    nested = normalize_order_book(
        {"yes": {"bids": [{"price": "0.4"}, {"price": "0.3", "size": "5"}], "asks": [["0.6"]]}}, "m", "M"
    )
    flat = normalize_order_book({"bids": [{"price": "0.4"}, ["0.3", "5"]], "asks": ["0.6"]}, "t", "T")

    for book in (nested, flat):
        assert [(l.price, l.size) for l in book.yes.bids] == [(0.3, 5.0)]
        assert book.yes.asks == []
