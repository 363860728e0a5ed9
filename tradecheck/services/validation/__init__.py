"""
Trade Validation Engine

CONTRACT:
    Input:  symbol + strategy + TradeStrikes + expiration (+ ValidationOptions)
    Output: ValidationReport

RESPONSIBILITIES:
    - Fetch market context and per-strike probabilities concurrently
    - Run the fixed check battery (buffers, touch probability, ATR distance,
      IV level, IV/HV ratio, VIX, market direction, liquidity, DTE)
    - Reduce check outcomes into one overall status
    - Synthesize a recommendation
    - Snapshot-only entry gate (should_enter_trade)

PURE PYTHON after the fetch - No external scoring.
All rules are deterministic and auditable.

CRITICAL: If a trade is REJECTED, it should not be entered.
"""

from tradecheck.services.validation.entry import should_enter_trade
from tradecheck.services.validation.interface import TradeValidationRequest, TradeValidationServiceInterface
from tradecheck.services.validation.recommendation import extract_key_metrics, generate_recommendation
from tradecheck.services.validation.rules import (
    build_checks,
    evaluate_ladder,
    reduce_overall_status,
    summarize_checks,
)
from tradecheck.services.validation.service import TradeValidationService, get_validation_service

__all__ = [
    "TradeValidationRequest",
    "TradeValidationService",
    "TradeValidationServiceInterface",
    "build_checks",
    "evaluate_ladder",
    "extract_key_metrics",
    "generate_recommendation",
    "get_validation_service",
    "reduce_overall_status",
    "should_enter_trade",
    "summarize_checks",
]
