"""
CONTRACT 3: Option Liquidity

Input: option quote (bid/ask/volume/open interest) + LiquidityConfig
Output: LiquidityAssessment

Score and quality tier are computed by separate rules and may disagree.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class LiquidityQuality(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"

    @property
    def rank(self) -> int:
        return QUALITY_RANK[self]


QUALITY_RANK = {
    LiquidityQuality.EXCELLENT: 3,
    LiquidityQuality.GOOD: 2,
    LiquidityQuality.FAIR: 1,
    LiquidityQuality.POOR: 0,
}


# =============================================================================
# INPUT: Configuration
# =============================================================================


class LiquidityConfig(BaseModel):
    """Tradeability rules for a single option."""

    min_liquidity_score: float = Field(
        default=50,
        ge=0,
        le=100,
        description="Minimum 0-100 score for an option to be tradeable",
    )
    require_volume: bool = Field(default=True, description="Require nonzero day volume")
    require_open_interest: bool = Field(default=True, description="Require nonzero open interest")


class LiquidityFilterConfig(LiquidityConfig):
    """Batch filter rules."""

    min_quality: LiquidityQuality = Field(
        default=LiquidityQuality.FAIR,
        description="Lowest quality tier that passes",
    )
    return_rejected: bool = Field(default=False, description="Include rejected options in the result")


# =============================================================================
# INPUT: Normalized option market
# =============================================================================


class OptionMarket(BaseModel):
    """Canonical bid/ask/volume/OI record; None means the provider sent nothing."""

    model_config = ConfigDict(frozen=True)

    bid: Optional[float] = None
    ask: Optional[float] = None
    volume: Optional[float] = None
    open_interest: Optional[float] = None


# =============================================================================
# OUTPUT: LiquidityAssessment
# =============================================================================


class ThresholdsMet(BaseModel):
    model_config = ConfigDict(frozen=True)

    spread: bool
    volume: bool
    open_interest: bool


class LiquidityAssessment(BaseModel):
    """
    Liquidity verdict for one option.
    Returned by: analyze_option_liquidity
    Consumed by: liquidity filter, market depth, Trade Validation Service
    """

    model_config = ConfigDict(frozen=True)

    tradeable: bool
    liquidity_score: int = Field(..., ge=0, le=100)
    quality: LiquidityQuality
    description: str
    reason: Optional[str] = None

    bid: Optional[float] = None
    ask: Optional[float] = None
    mid: Optional[float] = None
    spread: Optional[float] = None
    spread_pct: Optional[float] = None
    volume: float = 0.0
    open_interest: float = 0.0

    volume_oi_ratio: float = 0.0
    volume_oi_interpretation: str = "Normal volume"

    warnings: list[str] = Field(default_factory=list)
    recommendation: str
    thresholds_met: Optional[ThresholdsMet] = None


class AssessedOption(BaseModel):
    """An input option tagged with its liquidity assessment."""

    model_config = ConfigDict(frozen=True)

    option: dict[str, Any]
    liquidity: LiquidityAssessment
    rejection_reason: Optional[str] = None


class LiquidityFilterStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_analyzed: int
    passed: int
    rejected_count: int
    rejection_reasons: dict[str, int] = Field(default_factory=dict)
    pass_rate: float = Field(..., ge=0, le=100)
    avg_liquidity_score_passed: int = Field(..., ge=0, le=100)


class LiquidityFilterResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    filtered_options: list[AssessedOption]
    rejected_options: Optional[list[AssessedOption]] = None
    statistics: LiquidityFilterStatistics
    summary: str


class DepthAverages(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume: int = 0
    open_interest: int = 0
    spread_pct: float = 0.0


class MarketDepth(BaseModel):
    """Whole-chain liquidity summary."""

    model_config = ConfigDict(frozen=True)

    total_contracts: int
    tradeable_contracts: int
    tradeable_pct: float = 0.0
    market_depth: LiquidityQuality
    avg_metrics: DepthAverages = Field(default_factory=DepthAverages)
    quality_distribution: dict[str, int] = Field(default_factory=dict)
    recommendation: str
