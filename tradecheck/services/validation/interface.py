"""
Trade Validation Service Interface

Defines the contract for the pre-trade validation layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from tradecheck.services.base import BaseService
from tradecheck.schemas.validation import (
    StrategyType,
    TradeStrikes,
    ValidationOptions,
    ValidationReport,
)


@dataclass
class TradeValidationRequest:
    """Input for a trade validation."""

    symbol: str
    strategy_type: Union[StrategyType, str]
    strikes: TradeStrikes
    expiration: str
    options: Optional[ValidationOptions] = None


class TradeValidationServiceInterface(BaseService[TradeValidationRequest, ValidationReport]):
    """
    Trade Validation Service Contract.

    INPUT: TradeValidationRequest
        - symbol: Underlying
        - strategy_type: iron_condor, strangle, call_credit_spread, ...
        - strikes: short/long call/put strikes (unused legs None)
        - expiration: YYYY-MM-DD
        - options: contract for the snapshot, market structure toggle

    OUTPUT: ValidationReport
        - overall_status: APPROVED / LOW_RISK / MODERATE_RISK / HIGH_RISK / REJECTED
        - checks: every check that ran, in battery order
        - probabilities: per populated strike
        - recommendation: action, confidence, advice

    CHECK BATTERY (in order):
        1. Short call / short put buffer
        2. Probability of touch per short strike
        3. ATR distance per short strike
        4. Implied volatility level
        5. IV vs historical volatility
        6. Market volatility (VIX)
        7. Market direction
        8. Liquidity (bid/ask spread)
        9. Days to expiration

    Any CRITICAL failure REJECTS the trade.
    """

    @property
    def name(self) -> str:
        return "TradeValidationService"

    @abstractmethod
    async def execute(self, input_data: TradeValidationRequest) -> ValidationReport:
        """Validate a trade candidate."""
        pass

    @abstractmethod
    async def validate_trade(
        self,
        symbol: str,
        strategy_type: Union[StrategyType, str],
        strikes: Union[TradeStrikes, dict],
        expiration: str,
        options: Optional[ValidationOptions] = None,
    ) -> ValidationReport:
        """Validate a trade candidate."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check the underlying market data provider."""
        pass
