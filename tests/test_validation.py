import pytest

from arbscope.core.models import MarketOrderBook, OrderLevel, OutcomeOrderBook
from arbscope.utils.validation import (
    ValidationError,
    validate_order_book,
    validate_price,
    validate_size,
)


def _book(price=0.5, size=10.0, market_id="m1"):
    return MarketOrderBook(
        id=market_id,
        label="m",
        yes=OutcomeOrderBook(bids=[OrderLevel(price, size)]),
        no=OutcomeOrderBook(),
    )


def test_validate_price():
    assert validate_price(1) == 1.0
    for bad in (float("nan"), -0.1, 1.5, "0.5", True, None):
        with pytest.raises(ValidationError):
            validate_price(bad)


def test_validate_size():
    assert validate_size(0) == 0.0
    for bad in (-1, float("inf"), float("nan"), "10"):
        with pytest.raises(ValidationError):
            validate_size(bad)


def test_validate_order_book():
    book = _book()
    assert validate_order_book(book) is book

    with pytest.raises(ValidationError, match="yes.bids"):
        validate_order_book(_book(price=float("nan")))
    with pytest.raises(ValidationError):
        validate_order_book(_book(size=-5))
    with pytest.raises(ValidationError):
        validate_order_book(_book(market_id="  "))


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)
