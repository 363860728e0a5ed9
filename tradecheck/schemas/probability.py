"""
CONTRACT 2: Strike Probability

Input: symbol + strike + expiration + option type
Output: ProbabilityResult

Deterministic statistics only: Black-Scholes distance, reflection-principle
touch probability, ATR distance.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecheck.schemas.market import Greeks, OptionType


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class WarningSeverity(str, Enum):
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class VolatilitySource(str, Enum):
    IMPLIED = "implied"
    HISTORICAL = "historical"


class ProbabilityWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: WarningSeverity
    metric: str = Field(..., description="probability / distance / volatility / proximity")
    message: str
    value: float


class ProbabilityResult(BaseModel):
    """
    Probability analysis for a single strike.
    Returned by: Probability Service
    Consumed by: Trade Validation Service
    """

    model_config = ConfigDict(frozen=True)

    # Basic parameters
    strike: float = Field(..., gt=0)
    option_type: OptionType
    current_price: float = Field(..., gt=0)
    days_to_expiration: int = Field(..., ge=0)
    time_to_expiry_years: float = Field(..., gt=0)

    # Probability metrics
    prob_itm: float = Field(..., ge=0, le=1)
    prob_otm: float = Field(..., ge=0, le=1)
    prob_touch: float = Field(..., ge=0, le=1)

    # Expected moves (1 standard deviation)
    expected_move: float = Field(..., ge=0)
    expected_move_pct: float = Field(..., ge=0)
    range_1sd: tuple[float, float]
    range_2sd: tuple[float, float]

    # Distance analysis
    distance_to_strike: float = Field(..., ge=0)
    distance_in_percent: float = Field(..., ge=0)
    distance_in_atr: float = Field(..., ge=0)
    distance_in_stddev: float = Field(..., ge=0)

    # Volatility context
    implied_volatility: float = Field(..., ge=0)
    historical_volatility: float = Field(..., ge=0)
    volatility_source: VolatilitySource
    iv_hv_ratio: float = Field(..., ge=0)
    atr_14d: float = Field(..., ge=0)

    greeks: Greeks = Field(default_factory=Greeks)

    # Quote data
    bid: float = Field(default=0.0, ge=0)
    ask: float = Field(default=0.0, ge=0)
    mid: float = Field(default=0.0, ge=0)
    bid_ask_spread: float = 0.0
    volume: float = Field(default=0.0, ge=0)
    open_interest: float = Field(default=0.0, ge=0)

    # Risk assessment
    risk_level: RiskLevel
    warnings: list[ProbabilityWarning] = Field(default_factory=list)

    # Black-Scholes parameters
    d1: float
    d2: float
    risk_free_rate: float

    @model_validator(mode="after")
    def touch_bounds_itm(self) -> "ProbabilityResult":
        if self.prob_touch < self.prob_itm:
            raise ValueError("prob_touch must be >= prob_itm")
        return self
