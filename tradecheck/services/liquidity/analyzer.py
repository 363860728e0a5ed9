"""
Option Liquidity Analyzer

Scores bid/ask spread, volume and open interest into a 0-100 liquidity
score and a quality tier, filters batches of options, and summarizes
whole-chain market depth.

PURE PYTHON - No I/O. Same input, same output.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import BaseModel

from tradecheck.schemas.liquidity import (
    AssessedOption,
    DepthAverages,
    LiquidityAssessment,
    LiquidityConfig,
    LiquidityFilterConfig,
    LiquidityFilterResult,
    LiquidityFilterStatistics,
    LiquidityQuality,
    MarketDepth,
    ThresholdsMet,
)
from tradecheck.services.market_data.normalize import normalize_option_market

logger = logging.getLogger(__name__)

OptionInput = Union[Mapping[str, Any], BaseModel]

# Tier thresholds, checked in order; a tier matches only if all three clear
LIQUIDITY_THRESHOLDS: dict[LiquidityQuality, dict[str, Any]] = {
    LiquidityQuality.EXCELLENT: {
        "max_spread_pct": 3,
        "min_volume": 500,
        "min_open_interest": 1000,
        "description": "Very tight spread - ideal for trading",
    },
    LiquidityQuality.GOOD: {
        "max_spread_pct": 7,
        "min_volume": 100,
        "min_open_interest": 500,
        "description": "Acceptable spread - tradeable with limit orders",
    },
    LiquidityQuality.FAIR: {
        "max_spread_pct": 15,
        "min_volume": 50,
        "min_open_interest": 200,
        "description": "Wide spread - use limit orders, expect slippage",
    },
    LiquidityQuality.POOR: {
        "max_spread_pct": float("inf"),
        "min_volume": 0,
        "min_open_interest": 0,
        "description": "Very wide spread - avoid if possible",
    },
}

# Spread above this is never tradeable
MAX_TRADEABLE_SPREAD_PCT = 15

# (lower bound, points), first match wins
SPREAD_POINTS = [(3, 40), (7, 30), (15, 20)]
SPREAD_POINTS_FLOOR = 10
VOLUME_POINTS = [(500, 30), (100, 20), (50, 10), (10, 5)]
OPEN_INTEREST_POINTS = [(1000, 30), (500, 20), (200, 10), (50, 5)]

NO_MARKET_WARNING = "No market - cannot trade this option"


def _spread_points(spread_pct: float) -> int:
    for limit, points in SPREAD_POINTS:
        if spread_pct < limit:
            return points
    return SPREAD_POINTS_FLOOR


def _depth_points(value: float, ladder: list[tuple[int, int]]) -> int:
    for minimum, points in ladder:
        if value >= minimum:
            return points
    return 0


def _spread_recommendation(spread_pct: float) -> str:
    if spread_pct < 3:
        return "Very tight spread - good for trading"
    if spread_pct < 7:
        return "Acceptable spread - tradeable"
    if spread_pct < 15:
        return "Wide spread - use limit orders"
    return "Very wide spread - avoid if possible"


def _classify_quality(spread_pct: float, volume: float, open_interest: float) -> LiquidityQuality:
    for quality, tier in LIQUIDITY_THRESHOLDS.items():
        if (
            spread_pct < tier["max_spread_pct"]
            and volume >= tier["min_volume"]
            and open_interest >= tier["min_open_interest"]
        ):
            return quality
    return LiquidityQuality.POOR


def _as_dict(option: OptionInput) -> dict[str, Any]:
    if isinstance(option, BaseModel):
        return option.model_dump()
    return dict(option)


# =============================================================================
# SINGLE OPTION
# =============================================================================


def analyze_option_liquidity(
    option: OptionInput,
    config: Optional[LiquidityConfig] = None,
) -> LiquidityAssessment:
    """
    Score one option's liquidity.

    A missing or zero bid/ask is a no-market sentinel: score 0, POOR,
    not tradeable.
    """
    config = config or LiquidityConfig()
    market = normalize_option_market(option)

    volume = market.volume or 0.0
    open_interest = market.open_interest or 0.0

    if not market.bid or not market.ask:
        return LiquidityAssessment(
            tradeable=False,
            liquidity_score=0,
            quality=LiquidityQuality.POOR,
            description=LIQUIDITY_THRESHOLDS[LiquidityQuality.POOR]["description"],
            reason="No bid/ask quotes available",
            bid=market.bid,
            ask=market.ask,
            volume=volume,
            open_interest=open_interest,
            warnings=[NO_MARKET_WARNING],
            recommendation="Avoid - insufficient liquidity",
        )

    bid, ask = market.bid, market.ask
    mid = (bid + ask) / 2
    spread = ask - bid
    spread_pct = round(spread / mid * 100, 2)

    quality = _classify_quality(spread_pct, volume, open_interest)
    tier = LIQUIDITY_THRESHOLDS[quality]

    score = (
        _spread_points(spread_pct)
        + _depth_points(volume, VOLUME_POINTS)
        + _depth_points(open_interest, OPEN_INTEREST_POINTS)
    )

    warnings = []
    if spread_pct > 10:
        warnings.append(f"Wide bid-ask spread ({spread_pct:.1f}%) - expect slippage")
    if volume < 50:
        warnings.append(f"Low volume ({volume:g}) - may be difficult to fill large orders")
    if open_interest < 200:
        warnings.append(f"Low open interest ({open_interest:g}) - limited market depth")

    tradeable = (
        score >= config.min_liquidity_score
        and spread_pct < MAX_TRADEABLE_SPREAD_PCT
        and (not config.require_volume or volume > 0)
        and (not config.require_open_interest or open_interest > 0)
    )

    return LiquidityAssessment(
        tradeable=tradeable,
        liquidity_score=score,
        quality=quality,
        description=tier["description"],
        bid=bid,
        ask=ask,
        mid=round(mid, 2),
        spread=round(spread, 2),
        spread_pct=spread_pct,
        volume=volume,
        open_interest=open_interest,
        volume_oi_ratio=round(volume / open_interest, 3) if open_interest > 0 else 0.0,
        volume_oi_interpretation=(
            "High volume relative to OI - unusual activity"
            if open_interest > 0 and volume > open_interest
            else "Normal volume"
        ),
        warnings=warnings,
        recommendation=_spread_recommendation(spread_pct) if tradeable else "Avoid - insufficient liquidity",
        thresholds_met=ThresholdsMet(
            spread=spread_pct <= tier["max_spread_pct"],
            volume=volume >= tier["min_volume"],
            open_interest=open_interest >= tier["min_open_interest"],
        ),
    )


# =============================================================================
# BATCH FILTER
# =============================================================================


def filter_options_by_liquidity(
    options: Iterable[OptionInput],
    config: Optional[LiquidityFilterConfig] = None,
) -> LiquidityFilterResult:
    """
    Tag every option with its assessment and partition by quality and score.

    Passed options are sorted by score, best first (stable for ties).
    """
    config = config or LiquidityFilterConfig()
    min_rank = config.min_quality.rank

    passed: list[AssessedOption] = []
    rejected: list[AssessedOption] = []
    rejection_reasons: dict[str, int] = {}

    options = list(options)
    for option in options:
        assessment = analyze_option_liquidity(option, config)
        raw = _as_dict(option)

        if assessment.quality.rank < min_rank:
            reason = f"Quality {assessment.quality.value} below {config.min_quality.value}"
        elif assessment.liquidity_score < config.min_liquidity_score:
            reason = f"Liquidity score {assessment.liquidity_score} below {config.min_liquidity_score:g}"
        else:
            passed.append(AssessedOption(option=raw, liquidity=assessment))
            continue

        rejected.append(AssessedOption(option=raw, liquidity=assessment, rejection_reason=reason))
        rejection_reasons[reason] = rejection_reasons.get(reason, 0) + 1

    passed.sort(key=lambda item: item.liquidity.liquidity_score, reverse=True)

    total = len(options)
    pass_rate = round(len(passed) / total * 100, 1) if total else 0.0
    avg_score = round(sum(item.liquidity.liquidity_score for item in passed) / len(passed)) if passed else 0

    return LiquidityFilterResult(
        filtered_options=passed,
        rejected_options=rejected if config.return_rejected else None,
        statistics=LiquidityFilterStatistics(
            total_analyzed=total,
            passed=len(passed),
            rejected_count=len(rejected),
            rejection_reasons=rejection_reasons,
            pass_rate=pass_rate,
            avg_liquidity_score_passed=avg_score,
        ),
        summary=f"{len(passed)} of {total} options passed liquidity filter ({pass_rate}%)",
    )


# =============================================================================
# MARKET DEPTH
# =============================================================================


def assess_market_depth(chain: Iterable[OptionInput]) -> MarketDepth:
    """Whole-chain liquidity grade from the share of tradeable contracts."""
    chain = list(chain)
    if not chain:
        return MarketDepth(
            total_contracts=0,
            tradeable_contracts=0,
            market_depth=LiquidityQuality.POOR,
            recommendation="Insufficient data",
        )

    result = filter_options_by_liquidity(
        chain,
        LiquidityFilterConfig(min_quality=LiquidityQuality.FAIR, min_liquidity_score=40),
    )
    tradeable = result.filtered_options
    total = len(chain)
    tradeable_pct = len(tradeable) / total * 100

    averages = DepthAverages()
    if tradeable:
        count = len(tradeable)
        averages = DepthAverages(
            volume=round(sum(item.liquidity.volume for item in tradeable) / count),
            open_interest=round(sum(item.liquidity.open_interest for item in tradeable) / count),
            spread_pct=round(sum(item.liquidity.spread_pct or 0 for item in tradeable) / count, 2),
        )

    if tradeable_pct >= 70 and averages.volume >= 200 and averages.spread_pct < 5:
        depth = LiquidityQuality.EXCELLENT
        recommendation = "Very liquid market - easy to enter/exit positions"
    elif tradeable_pct >= 50 and averages.volume >= 100:
        depth = LiquidityQuality.GOOD
        recommendation = "Good liquidity - use limit orders for best fills"
    elif tradeable_pct >= 30:
        depth = LiquidityQuality.FAIR
        recommendation = "Moderate liquidity - carefully select strikes"
    else:
        depth = LiquidityQuality.POOR
        recommendation = "Poor liquidity - consider more liquid alternatives"

    distribution = {
        quality.value.lower(): sum(1 for item in tradeable if item.liquidity.quality == quality)
        for quality in (LiquidityQuality.EXCELLENT, LiquidityQuality.GOOD, LiquidityQuality.FAIR)
    }

    logger.debug(f"Market depth {depth.value}: {len(tradeable)}/{total} tradeable")

    return MarketDepth(
        total_contracts=total,
        tradeable_contracts=len(tradeable),
        tradeable_pct=round(tradeable_pct, 1),
        market_depth=depth,
        avg_metrics=averages,
        quality_distribution=distribution,
        recommendation=recommendation,
    )
