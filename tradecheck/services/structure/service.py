"""
Market Structure Service Implementation

Fetches spot and the option chain, then runs the pure analyzers.
"""

import asyncio
import logging
from typing import Optional

from tradecheck.schemas.structure import MarketStructureSnapshot
from tradecheck.services.base import ExternalAPIError
from tradecheck.services.market_data.interface import MarketDataProvider
from tradecheck.services.market_data.normalize import coerce_option_chain
from tradecheck.services.structure.analyzer import analyze_market_structure
from tradecheck.services.structure.interface import MarketStructureRequest, MarketStructureServiceInterface

logger = logging.getLogger(__name__)


class MarketStructureService(MarketStructureServiceInterface):
    """Provider-backed wrapper around analyze_market_structure."""

    def __init__(self, provider: MarketDataProvider):
        self.provider = provider

    @property
    def name(self) -> str:
        return "MarketStructureService"

    async def execute(self, input_data: MarketStructureRequest) -> MarketStructureSnapshot:
        return await self.analyze(input_data.symbol, input_data.expiration)

    async def analyze(self, symbol: str, expiration: Optional[str] = None) -> MarketStructureSnapshot:
        symbol = symbol.upper().strip()
        quote, raw_chain = await asyncio.gather(
            self.provider.get_quote(symbol),
            self.provider.get_option_chain_snapshot(symbol, expiration=expiration),
        )
        if quote.price <= 0:
            raise ExternalAPIError(self.name, f"No spot price for {symbol}")

        chain = coerce_option_chain(raw_chain)
        snapshot = analyze_market_structure(chain, quote.price)

        logger.info(
            f"Market structure {symbol}: {len(chain)} expirations, "
            f"regime={snapshot.gamma_exposure.regime.value} max_pain={snapshot.max_pain.strike}"
        )
        return snapshot

    async def health_check(self) -> bool:
        return await self.provider.health_check()


# Singleton instance
_service_instance: Optional[MarketStructureService] = None


def get_market_structure_service(provider: Optional[MarketDataProvider] = None) -> MarketStructureService:
    """Get or create market structure service instance."""
    global _service_instance
    if provider is not None:
        return MarketStructureService(provider)
    if _service_instance is None:
        from tradecheck.services.market_data.yahoo_provider import get_market_data_provider

        _service_instance = MarketStructureService(get_market_data_provider())
    return _service_instance
