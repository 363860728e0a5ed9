"""
Market Structure Analyzer

CONTRACT:
    Input:  OptionChain + spot price (+ optional recent trades)
    Output: MarketStructureSnapshot

RESPONSIBILITIES:
    - Put/call ratios (volume, open interest, premium)
    - Order flow bias and large block trades
    - Dealer gamma exposure regime
    - Max pain strike
    - Open-interest support and resistance walls

PURE PYTHON - The analyzers never fetch; the service wrapper does.
"""

from tradecheck.services.structure.analyzer import (
    analyze_gamma_exposure,
    analyze_market_structure,
    analyze_oi_distribution,
    analyze_option_flow,
    analyze_put_call_ratios,
    calculate_max_pain,
)
from tradecheck.services.structure.interface import MarketStructureRequest, MarketStructureServiceInterface
from tradecheck.services.structure.service import MarketStructureService, get_market_structure_service

__all__ = [
    "MarketStructureRequest",
    "MarketStructureService",
    "MarketStructureServiceInterface",
    "analyze_gamma_exposure",
    "analyze_market_structure",
    "analyze_oi_distribution",
    "analyze_option_flow",
    "analyze_put_call_ratios",
    "calculate_max_pain",
    "get_market_structure_service",
]
