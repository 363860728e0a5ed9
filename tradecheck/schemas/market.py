"""
CONTRACT 1: Market Context

Input: MarketDataProvider responses (Quote, Bar, IndicatorSeries, OptionContractSnapshot)
Output: MarketSnapshot

Provider payloads are parsed into these canonical records before any
computation touches them. Absent values stay None rather than becoming 0.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


class VixLevel(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"


class MarketStrength(str, Enum):
    STRONG_BULLISH = "STRONG_BULLISH"
    MODERATE_BULLISH = "MODERATE_BULLISH"
    WEAK_BULLISH = "WEAK_BULLISH"
    NEUTRAL = "NEUTRAL"
    WEAK_BEARISH = "WEAK_BEARISH"
    MODERATE_BEARISH = "MODERATE_BEARISH"
    STRONG_BEARISH = "STRONG_BEARISH"

    @property
    def is_strong(self) -> bool:
        return self.value.startswith("STRONG_")


class RiskEnvironment(str, Enum):
    NORMAL = "NORMAL"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


# =============================================================================
# INPUT: Provider payloads
# =============================================================================


class Quote(BaseModel):
    """Last quote for an equity, ETF or index."""

    symbol: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = Field(default=0.0, ge=0)
    market_status: Optional[str] = Field(
        default=None,
        description="Provider session label, e.g. 'open', 'closed', 'regular_trading'",
    )


class Bar(BaseModel):
    """Single OHLCV bar. Accepts both long and single-letter field names."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("timestamp", "t")
    )
    open: float = Field(..., validation_alias=AliasChoices("open", "o"))
    high: float = Field(..., validation_alias=AliasChoices("high", "h"))
    low: float = Field(..., validation_alias=AliasChoices("low", "l"))
    close: float = Field(..., validation_alias=AliasChoices("close", "c"))
    volume: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("volume", "v"))


class IndicatorValue(BaseModel):
    timestamp: Optional[datetime] = None
    value: Optional[float] = None


class IndicatorSeries(BaseModel):
    """Indicator series, most recent value first."""

    values: list[IndicatorValue] = Field(default_factory=list)

    @property
    def latest(self) -> Optional[float]:
        if not self.values:
            return None
        return self.values[0].value


class Greeks(BaseModel):
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None


class OptionContractDetails(BaseModel):
    ticker: Optional[str] = None
    contract_type: Optional[OptionType] = None
    strike_price: Optional[float] = None
    expiration_date: Optional[str] = None


class OptionLastQuote(BaseModel):
    bid_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("bid_price", "bid"))
    ask_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("ask_price", "ask"))
    mid_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("mid_price", "midpoint", "mid"))


class OptionLastTrade(BaseModel):
    price: Optional[float] = None
    size: Optional[int] = None


class OptionDay(BaseModel):
    volume: Optional[float] = None
    open: Optional[float] = None
    close: Optional[float] = None


class OptionContractSnapshot(BaseModel):
    """Snapshot of a single option contract."""

    details: OptionContractDetails = Field(default_factory=OptionContractDetails)
    last_quote: Optional[OptionLastQuote] = None
    last_trade: Optional[OptionLastTrade] = None
    implied_volatility: Optional[float] = Field(default=None, ge=0)
    greeks: Greeks = Field(default_factory=Greeks)
    day: Optional[OptionDay] = None
    open_interest: Optional[float] = Field(default=None, ge=0)
    underlying_price: Optional[float] = Field(
        default=None,
        ge=0,
        description="Underlying price at snapshot time, when the provider ships it",
    )


# =============================================================================
# INPUT: Option chain
# =============================================================================


class ChainPrice(BaseModel):
    last: Optional[float] = None
    volume: Optional[float] = None
    open_interest: Optional[float] = None
    bid: Optional[float] = None
    ask: Optional[float] = None


class ChainOption(BaseModel):
    """One contract row of an option chain."""

    strike: float
    price: ChainPrice = Field(default_factory=ChainPrice)
    greeks: Greeks = Field(default_factory=Greeks)
    implied_volatility: Optional[float] = None


class ExpirationChain(BaseModel):
    calls: list[ChainOption] = Field(default_factory=list)
    puts: list[ChainOption] = Field(default_factory=list)


# Keyed by expiration date (YYYY-MM-DD)
OptionChain = dict[str, ExpirationChain]


# =============================================================================
# OUTPUT: MarketSnapshot Components
# =============================================================================


class VWAPDistance(BaseModel):
    model_config = ConfigDict(frozen=True)

    dollars: float
    percent: float
    above_vwap: bool
    interpretation: str


class IntradayMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    high: float = 0.0
    low: float = 0.0
    range: float = 0.0
    range_pct: float = 0.0
    open: float = 0.0
    vwap: float = 0.0
    distance_from_vwap: VWAPDistance
    bars_count: int = Field(default=0, ge=0)


class Technicals(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsi: Optional[float] = None
    sma_20: Optional[float] = None
    sma_50: Optional[float] = None
    price_vs_sma20: Optional[float] = Field(default=None, description="% above/below SMA20")
    price_vs_sma50: Optional[float] = Field(default=None, description="% above/below SMA50")


class UnderlyingContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = 0.0
    intraday: IntradayMetrics
    technicals: Technicals


class MarketConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    # None when the feed was unavailable
    vix: Optional[float] = None
    vix_level: Optional[VixLevel] = None
    spy_price: Optional[float] = None
    spy_change: Optional[float] = None
    spy_change_percent: Optional[float] = None
    spy_volume: Optional[float] = None
    market_strength: MarketStrength
    market_status: str = "unknown"
    risk_environment: RiskEnvironment


class OptionContext(BaseModel):
    """Option-specific data, present when a contract was requested."""

    model_config = ConfigDict(frozen=True)

    strike: Optional[float] = None
    expiration: Optional[str] = None
    contract_type: Optional[OptionType] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    mid: Optional[float] = None
    last: Optional[float] = None
    implied_volatility: Optional[float] = None
    greeks: Greeks = Field(default_factory=Greeks)
    volume: Optional[float] = None
    open_interest: Optional[float] = None


# =============================================================================
# OUTPUT: MarketSnapshot (Complete Response)
# =============================================================================


class MarketSnapshot(BaseModel):
    """
    Complete market picture for an options trading decision.
    Returned by: Market Context Service
    Consumed by: Trade Validation Service, entry gate
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    symbol: str
    underlying: UnderlyingContext
    market: MarketConditions
    option: Optional[OptionContext] = None
