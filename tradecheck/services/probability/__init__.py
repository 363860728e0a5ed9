"""
Strike Probability Engine

CONTRACT:
    Input:  symbol + strike + expiration + option type
    Output: ProbabilityResult

RESPONSIBILITIES:
    - Probability of expiring in the money (Black-Scholes)
    - Probability of touching the strike before expiration
    - Expected 1 standard deviation move
    - Strike distance in dollars, percent, ATR and standard deviations
    - Risk level and graded warnings

PURE PYTHON - Deterministic statistics, no forecasting.
"""

from tradecheck.services.probability.interface import ProbabilityRequest, ProbabilityServiceInterface
from tradecheck.services.probability.service import (
    ProbabilityService,
    assess_risk,
    compute_strike_metrics,
    days_to_expiration,
    generate_warnings,
    get_probability_service,
)

__all__ = [
    "ProbabilityRequest",
    "ProbabilityService",
    "ProbabilityServiceInterface",
    "assess_risk",
    "compute_strike_metrics",
    "days_to_expiration",
    "generate_warnings",
    "get_probability_service",
]
