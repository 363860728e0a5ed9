"""
Market Data Provider Interface

Defines the contract every market-data source must satisfy.
The analytics never talk to a vendor directly; they consume these records.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from tradecheck.schemas.market import (
    Bar,
    IndicatorSeries,
    OptionChain,
    OptionContractSnapshot,
    OptionType,
    Quote,
)


class MarketDataProvider(ABC):
    """
    Market Data Provider Contract.

    All methods are coroutines. A provider raises ExternalAPIError when a
    fetch fails; callers decide whether that failure is fatal or degrades
    to a neutral default.

    OUTPUT RECORDS:
        - Quote: price, change, change_percent, volume, market_status
        - Bar: OHLCV, oldest first
        - IndicatorSeries: most recent value first
        - OptionContractSnapshot: quote, greeks, IV, day volume, OI
        - OptionChain: {expiration: {calls: [...], puts: [...]}}
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote:
        """Latest quote for an equity, ETF or index."""
        pass

    @abstractmethod
    async def get_intraday_bars(
        self,
        symbol: str,
        multiplier: int,
        timespan: str,
        day: date,
    ) -> list[Bar]:
        """Intraday bars for a single session (e.g. 5 x minute)."""
        pass

    @abstractmethod
    async def get_historical_bars(
        self,
        symbol: str,
        multiplier: int,
        timespan: str,
        from_date: date,
        to_date: date,
    ) -> list[Bar]:
        """Bars between two dates, inclusive."""
        pass

    @abstractmethod
    async def get_rsi(self, symbol: str, window: int = 14) -> IndicatorSeries:
        """Daily RSI series."""
        pass

    @abstractmethod
    async def get_sma(self, symbol: str, window: int) -> IndicatorSeries:
        """Daily simple moving average series."""
        pass

    @abstractmethod
    async def get_specific_option_snapshot(
        self,
        symbol: str,
        contract_id: str,
    ) -> OptionContractSnapshot:
        """Snapshot of one contract by its vendor id (e.g. an OCC symbol)."""
        pass

    @abstractmethod
    async def get_option_snapshot(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: OptionType,
    ) -> OptionContractSnapshot:
        """Snapshot of the contract matching strike/expiration/type."""
        pass

    @abstractmethod
    async def get_option_chain_snapshot(
        self,
        symbol: str,
        expiration: Optional[str] = None,
        strike_min: Optional[float] = None,
        strike_max: Optional[float] = None,
    ) -> OptionChain:
        """Option chain grouped by expiration."""
        pass

    async def health_check(self) -> bool:
        """Default: a provider is healthy if it can quote the broad market."""
        try:
            quote = await self.get_quote("SPY")
            return quote.price > 0
        except Exception:
            return False
