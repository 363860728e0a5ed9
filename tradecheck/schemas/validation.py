"""
CONTRACT 5: Trade Validation

Input: symbol + strategy + TradeStrikes + expiration (+ ValidationOptions)
Output: ValidationReport

DETERMINISTIC checks fused into a ranked verdict.
A CRITICAL failure rejects the trade regardless of any passes.
"""

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Mapping, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

from tradecheck.schemas.market import MarketSnapshot
from tradecheck.schemas.probability import ProbabilityResult
from tradecheck.schemas.structure import MarketStructureSnapshot


# =============================================================================
# ENUMS
# =============================================================================


class StrategyType(str, Enum):
    IRON_CONDOR = "iron_condor"
    STRANGLE = "strangle"
    STRADDLE = "straddle"
    CALL_CREDIT_SPREAD = "call_credit_spread"
    PUT_CREDIT_SPREAD = "put_credit_spread"
    COVERED_CALL = "covered_call"
    CASH_SECURED_PUT = "cash_secured_put"
    IRON_BUTTERFLY = "iron_butterfly"


class CheckStatus(str, Enum):
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"


class Severity(str, Enum):
    INFO = "INFO"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class OverallStatus(str, Enum):
    APPROVED = "APPROVED"
    LOW_RISK = "LOW_RISK"
    MODERATE_RISK = "MODERATE_RISK"
    HIGH_RISK = "HIGH_RISK"
    REJECTED = "REJECTED"


class EntryAssessment(str, Enum):
    APPROVED = "APPROVED"
    PROCEED_WITH_CAUTION = "PROCEED_WITH_CAUTION"
    REJECTED = "REJECTED"


# =============================================================================
# INPUT: Trade candidate
# =============================================================================


class TradeStrikes(BaseModel):
    """Strike prices for the legs of a strategy. Unused legs stay None."""

    short_call: Optional[float] = Field(default=None, gt=0)
    short_put: Optional[float] = Field(default=None, gt=0)
    long_call: Optional[float] = Field(default=None, gt=0)
    long_put: Optional[float] = Field(default=None, gt=0)

    def populated(self) -> dict[str, float]:
        """Legs that carry a strike, in declaration order."""
        return {leg: strike for leg, strike in self.model_dump().items() if strike is not None}


class ValidationOptions(BaseModel):
    """Optional extras for a validation run."""

    option_contract: Optional[str] = Field(
        default=None,
        description="Contract id to include in the market snapshot",
    )
    include_market_structure: bool = Field(
        default=False,
        description="Fetch the option chain and attach a market-structure snapshot",
    )
    structure_expiration: Optional[str] = Field(
        default=None,
        description="Restrict the market-structure chain to one expiration (defaults to the trade's)",
    )


# =============================================================================
# READ-ONLY CONTAINERS
# =============================================================================


def _freeze(value: Any) -> Any:
    """Recursively swap dicts for read-only mapping proxies and lists for tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


# Check details: arbitrary JSON-like payload, frozen all the way down
FrozenDetails = Annotated[
    Mapping[str, Any],
    AfterValidator(_freeze),
    PlainSerializer(_thaw, return_type=dict[str, Any]),
]

# Leg -> frozen model; only the mapping itself needs wrapping
FrozenProbabilities = Annotated[
    Mapping[str, ProbabilityResult],
    AfterValidator(MappingProxyType),
    PlainSerializer(dict, return_type=dict[str, ProbabilityResult]),
]


# =============================================================================
# OUTPUT: Checks
# =============================================================================


class ValidationCheck(BaseModel):
    """Single scored check."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: CheckStatus
    severity: Severity
    value: float
    threshold: float
    details: FrozenDetails = Field(..., description="Always carries a 'message' key")


class ValidationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_checks: int
    passed: int
    warnings: int
    failures: int
    critical_failures: int


class RecommendationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    check: str
    message: str
    value: float


class StrikeKeyMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    prob_touch: str
    distance_atr: str
    expected_move: str


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    confidence: str
    reason: str
    issues: tuple[RecommendationIssue, ...] = ()
    advice: tuple[str, ...]
    key_metrics: Optional[
        Annotated[
            Mapping[str, StrikeKeyMetrics],
            AfterValidator(MappingProxyType),
            PlainSerializer(dict, return_type=dict[str, StrikeKeyMetrics]),
        ]
    ] = None


# =============================================================================
# OUTPUT: ValidationReport (Complete Response)
# =============================================================================


class ValidationReport(BaseModel):
    """
    Go/no-go verdict for a trade candidate.
    Returned by: Trade Validation Service

    IMPORTANT: If REJECTED, the trade should not be entered.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    symbol: str
    strategy: str
    expiration: str
    strikes: TradeStrikes

    overall_status: OverallStatus
    summary: ValidationSummary

    checks: tuple[ValidationCheck, ...]
    probabilities: FrozenProbabilities
    market_data: MarketSnapshot
    market_structure: Optional[MarketStructureSnapshot] = None

    recommendation: Recommendation


# =============================================================================
# OUTPUT: Entry gate
# =============================================================================


class EntryCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    check: str
    status: CheckStatus
    severity: Severity
    message: str
    should_block: bool = False


class EntrySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_checks: int
    passed: int
    warnings: int
    critical: int


class EntryRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    reason: str
    issues: list[str] = Field(default_factory=list)
    market_conditions: Optional[str] = None
    next_steps: list[str]


class EntryDecision(BaseModel):
    """Snapshot-only entry verdict (no per-strike probabilities needed)."""

    model_config = ConfigDict(frozen=True)

    safe_to_enter: bool
    overall_assessment: EntryAssessment
    warnings: list[EntryCheck]
    passed_checks: list[EntryCheck]
    summary: EntrySummary
    recommendation: EntryRecommendation
