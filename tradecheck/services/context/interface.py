"""
Market Context Service Interface

Defines the contract for the market-context aggregation layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional

from tradecheck.services.base import BaseService
from tradecheck.schemas.market import MarketSnapshot


@dataclass
class MarketContextRequest:
    """Input for a market picture."""

    symbol: str
    option_contract: Optional[str] = None


class MarketContextServiceInterface(BaseService[MarketContextRequest, MarketSnapshot]):
    """
    Market Context Service Contract.

    INPUT: MarketContextRequest
        - symbol: Underlying to analyze
        - option_contract: Optional contract id to include

    OUTPUT: MarketSnapshot
        - underlying: price, change, intraday VWAP/range, technicals
        - market: VIX bucket, proxy direction, market strength, risk environment
        - option: contract quote and greeks (if requested)

    FETCHES (concurrent):
        1. Underlying quote (required)
        2. Intraday bars
        3. VIX quote
        4. Broad-market proxy quote
        5. RSI(14), SMA(20), SMA(50)
        6. Option contract snapshot (if requested)

    Only the underlying quote is required. Every other fetch degrades to a
    neutral default when it fails.
    """

    @property
    def name(self) -> str:
        return "MarketContextService"

    @abstractmethod
    async def execute(self, input_data: MarketContextRequest) -> MarketSnapshot:
        """Build the market picture."""
        pass

    @abstractmethod
    async def get_complete_market_picture(
        self,
        symbol: str,
        option_contract: Optional[str] = None,
    ) -> MarketSnapshot:
        """Build the market picture for a symbol."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check the underlying market data provider."""
        pass
