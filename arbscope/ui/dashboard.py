from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, Tuple

# Ensure project root is on sys.path when running via Streamlit
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import streamlit as st

from arbscope.connectors.demo import DEMO_PAIRS
from arbscope.core.arb import calculate_arbitrage, calculate_profit
from arbscope.core.models import ArbitrageOpportunity, CorrelatedPair, CorrelationType, MarketOrderBook
from arbscope.main import fetch_demo_market_book
from arbscope.utils.payoff import calculate_payoff
from arbscope.utils.slippage_protection import (
    calculate_max_size_for_price_impact,
    estimate_fill_price,
    slippage_warning_for_point,
)
from arbscope.utils.volatility import calculate_risk_profile, calculate_volatility


st.set_page_config(page_title="Correlated Market Arbitrage", layout="wide")
st.title("Correlated Market Arbitrage")


def load_books(pair: CorrelatedPair, live: bool) -> Tuple[Optional[MarketOrderBook], Optional[MarketOrderBook]]:
    async def _run():
        if not live:
            return await asyncio.gather(
                fetch_demo_market_book(pair.market1_id, pair.market1_label),
                fetch_demo_market_book(pair.market2_id, pair.market2_label),
            )
        from arbscope.connectors.polymarket import PolymarketClient

        client = PolymarketClient()
        try:
            return await asyncio.gather(
                client.fetch_market_book(pair.market1_id, pair.market1_label, pair.market1_no_token),
                client.fetch_market_book(pair.market2_id, pair.market2_label, pair.market2_no_token),
            )
        finally:
            await client.close()

    return tuple(asyncio.run(_run()))


def render_summary(opp: ArbitrageOpportunity):
    strat = opp.execution_strategy
    st.markdown(
        f"**Buy {strat.buy_outcome}** on `{strat.buy_market}` @ ${strat.buy_price:.3f} → "
        f"**Sell {strat.sell_outcome}** on `{strat.sell_market}` @ ${strat.sell_price:.3f}"
    )
    cols = st.columns(5)
    cols[0].metric("Profit @ 100", f"${opp.profit_at_100_shares:.2f}")
    cols[1].metric("Profit @ 1000", f"${opp.profit_at_1000_shares:.2f}")
    cols[2].metric("Max profitable size", f"{opp.max_profitable_shares:,} sh")
    cols[3].metric("Slippage risk", f"{opp.slippage_risk:.2f}%")
    cols[4].metric("Confidence", f"{opp.confidence:.2f}")
    st.caption("Confidence is a weighted liquidity/profit/depth heuristic, not a statistical interval.")


def render_curve(opp: ArbitrageOpportunity):
    if not opp.profit_curve:
        st.info("Profit curve is empty: no size above zero stays profitable.")
        return
    st.subheader("Profit vs size")
    st.line_chart(
        {
            "shares": [p.shares for p in opp.profit_curve],
            "profit ($)": [p.profit for p in opp.profit_curve],
        },
        x="shares",
        y="profit ($)",
    )
    rows = [
        {
            "shares": p.shares,
            "avg buy": f"{p.buy_price:.4f}",
            "avg sell": f"{p.sell_price:.4f}",
            "cost": f"${p.total_cost:,.2f}",
            "revenue": f"${p.total_revenue:,.2f}",
            "profit": f"${p.profit:,.2f}",
            "per share": f"{p.profit_per_share * 100:.2f}¢",
        }
        for p in opp.profit_curve
    ]
    st.dataframe(rows, hide_index=True)


def render_size_analysis(opp: ArbitrageOpportunity):
    st.subheader("Size analysis")
    upper = max(opp.max_profitable_shares, 1)
    shares = st.slider("Shares", min_value=1, max_value=upper, value=min(100, upper))

    strat = opp.execution_strategy
    ranges = {
        (opp.market1_id, "YES"): opp.market1_yes_range,
        (opp.market1_id, "NO"): opp.market1_no_range,
        (opp.market2_id, "YES"): opp.market2_yes_range,
        (opp.market2_id, "NO"): opp.market2_no_range,
    }
    buy_range = ranges[(strat.buy_market, strat.buy_outcome)]
    sell_range = ranges[(strat.sell_market, strat.sell_outcome)]
    point = calculate_profit(buy_range, sell_range, shares)
    resting_buy, _ = estimate_fill_price(buy_range.asks, shares, "BUY")
    resting_sell, _ = estimate_fill_price(sell_range.bids, shares, "SELL")
    near_top = min(
        calculate_max_size_for_price_impact(buy_range.asks, 0.01, "BUY"),
        calculate_max_size_for_price_impact(sell_range.bids, 0.01, "SELL"),
    )

    warning = slippage_warning_for_point(point, strat.buy_price, strat.sell_price)
    vol = calculate_volatility(buy_range.midpoint, bid_ask_spread=buy_range.spread)
    profile = calculate_risk_profile(
        profit_amount=point.profit,
        slippage_percent=opp.slippage_risk,
        slippage_level=warning.level,
        implied_vol=vol.implied_vol,
        volatility_level=vol.level,
        max_shares=opp.max_profitable_shares,
        current_shares=shares,
        spread1=opp.market1_yes_range.spread,
        spread2=opp.market2_yes_range.spread,
    )

    left, right = st.columns(2)
    with left:
        st.metric("Profit", f"${point.profit:,.2f}", f"{point.profit_per_share * 100:.2f}¢/share")
        st.write(f"Slippage: **{warning.level}**, {warning.message}")
        st.write(f"Volatility: **{vol.level}**, {vol.message}")
        st.write(f"Resting depth only: buy avg {resting_buy:.4f}, sell avg {resting_sell:.4f}")
        st.caption(f"{near_top:,.0f} shares rest within 1% of the best price on both legs.")
    with right:
        st.write(f"{profile.emoji} **{profile.overall}**: {profile.summary}")
        for line in profile.details:
            st.write(line)
        st.caption(profile.recommendation)

    buy_leg = calculate_payoff("BUY", strat.buy_outcome, shares, point.buy_price)
    sell_leg = calculate_payoff("SELL", strat.sell_outcome, shares, point.sell_price)
    st.write(
        f"Capital at risk: buy leg ${buy_leg.capital_at_risk:,.2f}, sell leg ${sell_leg.capital_at_risk:,.2f}"
    )


live = os.environ.get("LIVE", "0") in {"1", "true", "TRUE", "yes"}
if live:
    st.sidebar.header("Markets")
    m1 = st.sidebar.text_input("Market 1 YES token id")
    m1_no = st.sidebar.text_input("Market 1 NO token id (optional)") or None
    m2 = st.sidebar.text_input("Market 2 YES token id")
    m2_no = st.sidebar.text_input("Market 2 NO token id (optional)") or None
    corr = st.sidebar.radio("Correlation", [c.value for c in CorrelationType])
    if not (m1 and m2):
        st.info("Enter two token ids to analyse.")
        st.stop()
    pair = CorrelatedPair(m1, "Market 1", m2, "Market 2", CorrelationType(corr), m1_no, m2_no)
else:
    labels = [f"{p.market1_label} ↔ {p.market2_label} ({p.correlation_type.value})" for p in DEMO_PAIRS]
    choice = st.sidebar.selectbox("Demo pair", range(len(DEMO_PAIRS)), format_func=lambda i: labels[i])
    pair = DEMO_PAIRS[choice]

book1, book2 = load_books(pair, live)
if book1 is None or book2 is None:
    st.error("Failed to fetch order books.")
    st.stop()

opportunity = calculate_arbitrage(book1, book2, pair.correlation_type)
if opportunity is None:
    st.info("No executable arbitrage at current liquidity.")
    st.stop()

render_summary(opportunity)
render_curve(opportunity)
render_size_analysis(opportunity)
