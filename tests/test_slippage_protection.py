import pytest

from arbscope.core.models import OrderLevel, ProfitPoint
from arbscope.utils.slippage_protection import (
    calculate_max_size_for_price_impact,
    calculate_slippage_warning,
    estimate_fill_price,
    slippage_warning_for_point,
)


def test_estimate_fill_price_walks_levels():
    levels = [OrderLevel(0.22, 100), OrderLevel(0.23, 200)]
    avg, total = estimate_fill_price(levels, 250)
    assert total == pytest.approx(56.5)
    assert avg == pytest.approx(0.226)


def test_estimate_fill_price_empty():
    assert estimate_fill_price([], 100) == (0.0, 0.0)
    assert estimate_fill_price([OrderLevel(0.5, 10)], 0) == (0.0, 0.0)


def test_max_size_for_price_impact():
    levels = [OrderLevel(0.5, 100), OrderLevel(0.504, 50), OrderLevel(0.51, 100)]
    assert calculate_max_size_for_price_impact(levels, 0.01) == 150
    assert calculate_max_size_for_price_impact([]) == 0.0


def test_low_slippage():
    w = calculate_slippage_warning(0.40, 0.402, 0.55, 0.549)
    assert w.level == "LOW"
    assert w.buy_slippage_cents == 0.2
    assert w.sell_slippage_cents == 0.1


def test_medium_asymmetric_slippage_names_worse_side():
    w = calculate_slippage_warning(0.40, 0.418, 0.55, 0.549)
    assert w.level == "MEDIUM"
    assert "buying" in w.message


def test_high_symmetric_slippage():
    w = calculate_slippage_warning(0.40, 0.43, 0.55, 0.52)
    assert w.level == "HIGH"
    assert w.message.startswith("Significant price impact at this size")


def test_warning_for_profit_point():
    point = ProfitPoint(
        shares=100,
        buy_price=0.40,
        sell_price=0.55,
        total_cost=40.0,
        total_revenue=55.0,
        profit=15.0,
        profit_per_share=0.15,
    )
    w = slippage_warning_for_point(point, 0.40, 0.55)
    assert w.level == "LOW"
    assert w.buy_slippage_cents == 0 and w.sell_slippage_cents == 0


def test_estimate_fill_price_uses_resting_depth_only():
    asks = [OrderLevel(0.25, 100), OrderLevel(0.125, 100)]
    avg, total = estimate_fill_price(asks, 500)
    # unsorted input, 300 shares beyond depth are not filled
    assert total == 37.5
    assert avg == 0.1875


def test_sell_side_helpers():
    bids = [OrderLevel(0.49, 100), OrderLevel(0.5, 100), OrderLevel(0.496, 50)]
    assert calculate_max_size_for_price_impact(bids, 0.01, "SELL") == 150

    avg, total = estimate_fill_price([OrderLevel(0.25, 10), OrderLevel(0.5, 10)], 20, "SELL")
    assert total == 7.5
    assert avg == 0.375
