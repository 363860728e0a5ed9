"""
Market Structure Service Interface

Defines the contract for the provider-backed market structure layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional

from tradecheck.services.base import BaseService
from tradecheck.schemas.structure import MarketStructureSnapshot


@dataclass
class MarketStructureRequest:
    """Input for a market structure snapshot."""

    symbol: str
    expiration: Optional[str] = None


class MarketStructureServiceInterface(BaseService[MarketStructureRequest, MarketStructureSnapshot]):
    """
    Market Structure Service Contract.

    INPUT: MarketStructureRequest
        - symbol: Underlying
        - expiration: Restrict the chain to one expiration (optional)

    OUTPUT: MarketStructureSnapshot
        - put_call_ratio: volume / open interest / premium
        - gamma_exposure: total GEX, regime, key strikes, profile
        - max_pain: strike minimizing writer payout
        - oi_walls: support / resistance from open interest
    """

    @property
    def name(self) -> str:
        return "MarketStructureService"

    @abstractmethod
    async def execute(self, input_data: MarketStructureRequest) -> MarketStructureSnapshot:
        """Fetch the chain and analyze it."""
        pass

    @abstractmethod
    async def analyze(self, symbol: str, expiration: Optional[str] = None) -> MarketStructureSnapshot:
        """Fetch quote and chain for a symbol and analyze them."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check the underlying market data provider."""
        pass
