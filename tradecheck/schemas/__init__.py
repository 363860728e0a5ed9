"""
tradecheck Schema Contracts

This module defines all contracts between pipeline components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from tradecheck.schemas.market import (
    Bar,
    ChainOption,
    ExpirationChain,
    IndicatorSeries,
    MarketSnapshot,
    MarketStrength,
    OptionChain,
    OptionContractSnapshot,
    OptionType,
    Quote,
    RiskEnvironment,
    VixLevel,
)
from tradecheck.schemas.probability import (
    ProbabilityResult,
    RiskLevel,
)
from tradecheck.schemas.liquidity import (
    LiquidityAssessment,
    LiquidityConfig,
    LiquidityFilterConfig,
    LiquidityFilterResult,
    LiquidityQuality,
    MarketDepth,
)
from tradecheck.schemas.structure import (
    FlowAnalysis,
    FlowTrade,
    GammaExposure,
    GammaRegime,
    MarketStructureSnapshot,
    MaxPain,
    OIWalls,
    PutCallRatios,
)
from tradecheck.schemas.validation import (
    CheckStatus,
    EntryDecision,
    OverallStatus,
    Severity,
    StrategyType,
    TradeStrikes,
    ValidationCheck,
    ValidationOptions,
    ValidationReport,
)

__all__ = [
    # Market
    "Bar",
    "ChainOption",
    "ExpirationChain",
    "IndicatorSeries",
    "MarketSnapshot",
    "MarketStrength",
    "OptionChain",
    "OptionContractSnapshot",
    "OptionType",
    "Quote",
    "RiskEnvironment",
    "VixLevel",
    # Probability
    "ProbabilityResult",
    "RiskLevel",
    # Liquidity
    "LiquidityAssessment",
    "LiquidityConfig",
    "LiquidityFilterConfig",
    "LiquidityFilterResult",
    "LiquidityQuality",
    "MarketDepth",
    # Structure
    "FlowAnalysis",
    "FlowTrade",
    "GammaExposure",
    "GammaRegime",
    "MarketStructureSnapshot",
    "MaxPain",
    "OIWalls",
    "PutCallRatios",
    # Validation
    "CheckStatus",
    "EntryDecision",
    "OverallStatus",
    "Severity",
    "StrategyType",
    "TradeStrikes",
    "ValidationCheck",
    "ValidationOptions",
    "ValidationReport",
]
