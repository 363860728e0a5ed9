"""
Liquidity Analyzer

CONTRACT:
    Input:  option quote(s) + LiquidityConfig / LiquidityFilterConfig
    Output: LiquidityAssessment / LiquidityFilterResult / MarketDepth

RESPONSIBILITIES:
    - Score spread, volume and open interest (0-100)
    - Assign a quality tier (EXCELLENT / GOOD / FAIR / POOR)
    - Decide tradeability
    - Filter and rank option batches
    - Grade whole-chain market depth

PURE PYTHON - No external calls.
Score and quality tier come from separate rules and may disagree.
"""

from tradecheck.services.liquidity.analyzer import (
    LIQUIDITY_THRESHOLDS,
    analyze_option_liquidity,
    assess_market_depth,
    filter_options_by_liquidity,
)

__all__ = [
    "LIQUIDITY_THRESHOLDS",
    "analyze_option_liquidity",
    "assess_market_depth",
    "filter_options_by_liquidity",
]
