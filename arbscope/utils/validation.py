"""Input validation for order books entering the engine.

The engine assumes validated numeric input. Callers that build books from
untrusted payloads run them through `validate_order_book` first so that NaN
prices, negative sizes or out-of-range probabilities are rejected at the
boundary instead of producing misleading profit curves.
"""

import math
from typing import Any

from arbscope.core.models import MarketOrderBook, OutcomeOrderBook


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_price(price: Any, label: str = "price") -> float:
    """Validate and normalize a price value.

    Args:
        price: The price value to validate
        label: Label for error messages

    Returns:
        Normalized float price value

    Raises:
        ValidationError: If price is not a number in [0, 1]
    """
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError(f"{label} must be numeric, got {type(price).__name__}")

    price = float(price)

    if math.isnan(price) or not 0 <= price <= 1:
        raise ValidationError(f"{label} must be between 0 and 1, got {price}")

    return price


def validate_size(size: Any, label: str = "size") -> float:
    """Validate and normalize a size/quantity value.

    Raises:
        ValidationError: If size is not a finite non-negative number
    """
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        raise ValidationError(f"{label} must be numeric, got {type(size).__name__}")

    size = float(size)

    if not math.isfinite(size) or size < 0:
        raise ValidationError(f"{label} must be finite and non-negative, got {size}")

    return size


def validate_market_id(market_id: Any, label: str = "market_id") -> str:
    if not isinstance(market_id, str):
        market_id = str(market_id)

    market_id = market_id.strip()

    if not market_id:
        raise ValidationError(f"{label} cannot be empty")

    return market_id


def _validate_outcome_book(book: OutcomeOrderBook, label: str) -> None:
    for side, levels in (("bids", book.bids), ("asks", book.asks)):
        for idx, level in enumerate(levels):
            validate_price(level.price, f"{label}.{side}[{idx}].price")
            validate_size(level.size, f"{label}.{side}[{idx}].size")


def validate_order_book(book: MarketOrderBook) -> MarketOrderBook:
    """Check every level of a market book; returns the book unchanged.

    Raises:
        ValidationError: On the first invalid id, price or size
    """
    validate_market_id(book.id, "id")
    _validate_outcome_book(book.yes, f"{book.id}.yes")
    _validate_outcome_book(book.no, f"{book.id}.no")
    return book
