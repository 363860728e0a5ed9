"""
CONTRACT 4: Market Structure

Input: option chain snapshot + spot price (+ optional recent trades)
Output: MarketStructureSnapshot

Positioning metrics only; nothing here is persisted between snapshots.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from tradecheck.schemas.market import OptionType


class GammaRegime(str, Enum):
    # Positive total GEX is labelled NEGATIVE (amplifying) and vice versa
    NEGATIVE = "Negative Gamma"
    POSITIVE = "Positive Gamma"


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


# =============================================================================
# INPUT: Recent trades
# =============================================================================


class FlowTrade(BaseModel):
    """One recent option print."""

    type: OptionType
    side: Optional[TradeSide] = None
    price: float = Field(..., ge=0)
    size: int = Field(..., ge=0, description="Contracts")
    bid: Optional[float] = None
    strike: Optional[float] = None
    timestamp: Optional[datetime] = None


# =============================================================================
# OUTPUT: Put/Call ratios
# =============================================================================


class RatioMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    ratio: Optional[float] = Field(..., description="put / call; None when the call side is empty")
    call_total: float
    put_total: float
    interpretation: str


class PutCallRatios(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume: RatioMetric
    open_interest: RatioMetric
    premium: RatioMetric


# =============================================================================
# OUTPUT: Flow
# =============================================================================


class BlockTrade(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: OptionType
    strike: Optional[float] = None
    size: int
    price: float
    dollar_value: float
    time: Optional[datetime] = None


class FlowAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    net_flow: Union[float, Literal["N/A"]]
    bullish_flow: float = 0.0
    bearish_flow: float = 0.0
    flow_ratio: Optional[float] = None
    large_block_trades: list[BlockTrade] = Field(default_factory=list)
    interpretation: str


# =============================================================================
# OUTPUT: Gamma exposure
# =============================================================================


class GammaLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    strike: float
    net_gamma: float


class GammaExposure(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_gex: float
    call_gex: float
    put_gex: float
    regime: GammaRegime
    max_gamma_strike: Optional[float] = None
    zero_gamma_strike: Optional[float] = None
    profile: list[GammaLevel] = Field(default_factory=list)
    interpretation: str


# =============================================================================
# OUTPUT: Max pain
# =============================================================================


class PainPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    strike: float
    pain: float
    percent_from_max: float


class MaxPain(BaseModel):
    model_config = ConfigDict(frozen=True)

    strike: Optional[float] = None
    current_spot: float
    percent_from_spot: Optional[float] = None
    total_pain_at_max: Optional[float] = None
    pain_distribution: list[PainPoint] = Field(default_factory=list)
    interpretation: str


# =============================================================================
# OUTPUT: Open interest walls
# =============================================================================


class OIWall(BaseModel):
    model_config = ConfigDict(frozen=True)

    strike: float
    open_interest: float
    percent_of_total: float


class ExpectedRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    low: Optional[float] = None
    high: Optional[float] = None
    width: float = 0.0


class OIWalls(BaseModel):
    model_config = ConfigDict(frozen=True)

    call_walls: list[OIWall] = Field(default_factory=list)
    put_walls: list[OIWall] = Field(default_factory=list)
    nearest_support: Optional[float] = None
    nearest_resistance: Optional[float] = None
    expected_range: ExpectedRange = Field(default_factory=ExpectedRange)
    interpretation: str


# =============================================================================
# OUTPUT: MarketStructureSnapshot (Complete Response)
# =============================================================================


class MarketStructureSnapshot(BaseModel):
    """
    Chain-level positioning picture.
    Returned by: analyze_market_structure / Market Structure Service
    Consumed by: caller, Trade Validation Service (informational)
    """

    model_config = ConfigDict(frozen=True)

    spot_price: float
    put_call_ratio: PutCallRatios
    gamma_exposure: GammaExposure
    max_pain: MaxPain
    oi_walls: OIWalls
    flow: Optional[FlowAnalysis] = None
