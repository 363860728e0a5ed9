"""
Market Context Aggregator

CONTRACT:
    Input:  symbol (+ optional option contract id)
    Output: MarketSnapshot

RESPONSIBILITIES:
    - Fetch quote, intraday bars, VIX, market proxy and technicals concurrently
    - Compute VWAP, distance from VWAP and intraday range
    - Classify VIX level, market strength and risk environment
    - Degrade gracefully when secondary data is unavailable

The underlying quote is the only required fetch.
"""

from tradecheck.services.context.interface import MarketContextRequest, MarketContextServiceInterface
from tradecheck.services.context.service import (
    MarketContextService,
    assess_market_strength,
    assess_risk_environment,
    classify_vix,
    get_market_context_service,
    vwap_distance,
)

__all__ = [
    "MarketContextRequest",
    "MarketContextService",
    "MarketContextServiceInterface",
    "assess_market_strength",
    "assess_risk_environment",
    "classify_vix",
    "get_market_context_service",
    "vwap_distance",
]
