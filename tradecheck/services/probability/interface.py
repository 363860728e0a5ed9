"""
Probability Service Interface

Defines the contract for the strike probability layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from tradecheck.services.base import BaseService
from tradecheck.schemas.market import OptionType
from tradecheck.schemas.probability import ProbabilityResult


@dataclass
class ProbabilityRequest:
    """Input for a strike probability calculation."""

    symbol: str
    strike: float
    expiration: str
    option_type: Union[OptionType, str]
    as_of: Optional[date] = None


class ProbabilityServiceInterface(BaseService[ProbabilityRequest, ProbabilityResult]):
    """
    Probability Service Contract.

    INPUT: ProbabilityRequest
        - symbol: Underlying
        - strike: Strike price
        - expiration: YYYY-MM-DD
        - option_type: call / put
        - as_of: Valuation date (defaults to today, market timezone)

    OUTPUT: ProbabilityResult
        - prob_itm / prob_otm: Black-Scholes N(d2) / N(-d2)
        - prob_touch: Reflection-principle touch probability
        - expected_move: 1 standard deviation move to expiration
        - distance_in_atr: Strike distance in ATR(14) units
        - risk_level + warnings

    Volatility is implied when available, historical otherwise.
    """

    @property
    def name(self) -> str:
        return "ProbabilityService"

    @abstractmethod
    async def execute(self, input_data: ProbabilityRequest) -> ProbabilityResult:
        """Calculate strike probabilities."""
        pass

    @abstractmethod
    async def calculate_probabilities(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: Union[OptionType, str],
        as_of: Optional[date] = None,
    ) -> ProbabilityResult:
        """Calculate probabilities for one strike."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check the underlying market data provider."""
        pass
