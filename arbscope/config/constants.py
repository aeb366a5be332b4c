"""Constants used by the arbitrage engine and its callers.

Engine constants are part of the numeric contract of the profit curve and the
confidence score; changing them changes every reported opportunity.
"""

# Reference sizes used to rank candidate legs
REFERENCE_SIZE_SMALL = 100
REFERENCE_SIZE_LARGE = 1000

# Maximum-profitable-size search bounds (hard cap, not derived from depth)
MIN_SEARCH_SHARES = 1
MAX_SEARCH_SHARES = 100_000

# Profit curve sampling
PROFIT_CURVE_STEPS = 20
PROFIT_CURVE_CHECKPOINTS = (10, 50, 100, 500, 1000)

# Price used for unfilled size when a book side is empty
EMPTY_ASK_PRICE = 1.0
EMPTY_BID_PRICE = 0.0

# Confidence score weights and saturation points
CONFIDENCE_LIQUIDITY_WEIGHT = 0.4
CONFIDENCE_PROFIT_WEIGHT = 0.3
CONFIDENCE_DEPTH_WEIGHT = 0.3
CONFIDENCE_LIQUIDITY_SHARES = 1000
CONFIDENCE_PROFIT_USD = 10
CONFIDENCE_DEPTH_LEVELS = 20

# Slippage warning thresholds (cents per share)
SLIPPAGE_LOW_CENTS = 0.5
SLIPPAGE_MEDIUM_CENTS = 2.0
SLIPPAGE_ASYMMETRY_CENTS = 1.0

# API and concurrency
API_TIMEOUT_SECONDS = 15
POLYMARKET_BOOK_CONCURRENCY = 8
DEFAULT_LLM_MODEL = "gpt-4o-mini"
MIN_LLM_CORRELATION_CONFIDENCE = 0.6
