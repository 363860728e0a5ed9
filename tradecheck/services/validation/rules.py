"""
Validation Rules

Each check is an ordered ladder of (predicate, status, severity) rows;
the first row whose predicate holds decides the outcome.
"""

from typing import Callable, Optional

from tradecheck.schemas.market import MarketSnapshot
from tradecheck.schemas.probability import ProbabilityResult
from tradecheck.schemas.validation import (
    CheckStatus,
    OverallStatus,
    Severity,
    TradeStrikes,
    ValidationCheck,
    ValidationSummary,
)
from tradecheck.services.context.service import classify_vix
from tradecheck.services.liquidity.analyzer import analyze_option_liquidity

Ladder = list[tuple[Callable[[float], bool], CheckStatus, Severity]]

PASS, WARNING, FAIL = CheckStatus.PASS, CheckStatus.WARNING, CheckStatus.FAIL


def _otherwise(_: float) -> bool:
    return True


# =============================================================================
# LADDERS
# =============================================================================

BUFFER_LADDER: Ladder = [
    (lambda pct: pct >= 3, PASS, Severity.INFO),
    (lambda pct: pct >= 2, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

PROB_TOUCH_LADDER: Ladder = [
    (lambda p: p < 0.50, PASS, Severity.INFO),
    (lambda p: p < 0.65, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

ATR_DISTANCE_LADDER: Ladder = [
    (lambda atr: atr >= 2.0, PASS, Severity.INFO),
    (lambda atr: atr >= 1.5, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

IV_LEVEL_LADDER: Ladder = [
    (lambda iv_pct: iv_pct < 50, PASS, Severity.INFO),
    (lambda iv_pct: iv_pct < 75, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

IV_HV_LADDER: Ladder = [
    (lambda ratio: ratio < 1.5, PASS, Severity.INFO),
    (lambda ratio: ratio < 2.0, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

VIX_LADDER: Ladder = [
    (lambda vix: vix < 20, PASS, Severity.INFO),
    (lambda vix: vix < 25, WARNING, Severity.HIGH),
    (_otherwise, FAIL, Severity.CRITICAL),
]

MARKET_DIRECTION_LADDER: Ladder = [
    (lambda change: abs(change) < 1.0, PASS, Severity.INFO),
    (lambda change: abs(change) < 1.5, WARNING, Severity.MEDIUM),
    (_otherwise, FAIL, Severity.HIGH),
]

SPREAD_LADDER: Ladder = [
    (lambda pct: pct < 10, PASS, Severity.INFO),
    (lambda pct: pct < 20, WARNING, Severity.MEDIUM),
    (_otherwise, FAIL, Severity.HIGH),
]

DTE_LADDER: Ladder = [
    (lambda dte: dte >= 7, PASS, Severity.INFO),
    (lambda dte: dte >= 3, WARNING, Severity.MEDIUM),
    (_otherwise, FAIL, Severity.HIGH),
]


def evaluate_ladder(ladder: Ladder, value: float) -> tuple[CheckStatus, Severity]:
    """First matching row wins."""
    for predicate, status, severity in ladder:
        if predicate(value):
            return status, severity
    raise ValueError(f"Ladder has no row matching {value}")


def _check(
    name: str,
    ladder: Ladder,
    value: float,
    threshold: float,
    messages: tuple[str, str, str],
    details: dict,
    ladder_value: Optional[float] = None,
) -> ValidationCheck:
    """Build a check; messages are (pass, warning, fail)."""
    status, severity = evaluate_ladder(ladder, value if ladder_value is None else ladder_value)
    message = {PASS: messages[0], WARNING: messages[1], FAIL: messages[2]}[status]
    return ValidationCheck(
        name=name,
        status=status,
        severity=severity,
        value=value,
        threshold=threshold,
        details={**details, "message": message},
    )


def _signed(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.2f}"


# =============================================================================
# CHECK BATTERY
# =============================================================================


def build_checks(
    market: MarketSnapshot,
    strikes: TradeStrikes,
    probabilities: dict[str, ProbabilityResult],
    expiration: str,
) -> list[ValidationCheck]:
    """Run the fixed check battery in order. Checks without inputs are skipped."""
    checks: list[ValidationCheck] = []
    price = market.underlying.price
    short_call = probabilities.get("short_call")
    short_put = probabilities.get("short_put")

    # 1. Strike buffer
    if strikes.short_call is not None and price > 0:
        buffer = (strikes.short_call - price) / price * 100
        checks.append(_check(
            "Short Call Buffer", BUFFER_LADDER, buffer, 3.0,
            (
                f"Adequate buffer - {buffer:.2f}%",
                f"Short call buffer marginal - {buffer:.2f}%",
                f"SHORT CALL TOO CLOSE - only {buffer:.2f}% buffer",
            ),
            {"current_price": price, "strike": strikes.short_call, "buffer_pct": buffer},
        ))
    if strikes.short_put is not None and price > 0:
        buffer = (price - strikes.short_put) / price * 100
        checks.append(_check(
            "Short Put Buffer", BUFFER_LADDER, buffer, 3.0,
            (
                f"Adequate buffer - {buffer:.2f}%",
                f"Short put buffer marginal - {buffer:.2f}%",
                f"SHORT PUT TOO CLOSE - only {buffer:.2f}% buffer",
            ),
            {"current_price": price, "strike": strikes.short_put, "buffer_pct": buffer},
        ))

    # 2. Probability of touch
    for leg, label in (("short_call", "Short Call"), ("short_put", "Short Put")):
        prob = probabilities.get(leg)
        if prob is None:
            continue
        touch_pct = prob.prob_touch * 100
        checks.append(_check(
            f"{label} - Probability of Touch", PROB_TOUCH_LADDER, prob.prob_touch, 0.50,
            (
                f"Acceptable probability - {touch_pct:.1f}%",
                f"High probability of touch - {touch_pct:.1f}%",
                f"EXTREME RISK - {touch_pct:.1f}% chance of touching {label.lower()}",
            ),
            {"prob_touch_pct": round(touch_pct, 1), "prob_itm_pct": round(prob.prob_itm * 100, 1)},
        ))

    # 3. ATR distance
    for leg, label in (("short_call", "Short Call"), ("short_put", "Short Put")):
        prob = probabilities.get(leg)
        if prob is None:
            continue
        distance = prob.distance_in_atr
        checks.append(_check(
            f"{label} - ATR Distance", ATR_DISTANCE_LADDER, distance, 2.0,
            (
                f"Outside normal range - {distance:.2f} ATR away",
                f"Close to daily range - {distance:.2f} ATR away",
                f"WITHIN DAILY RANGE - strike only {distance:.2f} ATR away",
            ),
            {"atr_distance": round(distance, 2), "atr_value": round(prob.atr_14d, 2)},
        ))

    primary = short_call or short_put

    # 4. Implied volatility level
    if primary is not None:
        iv = primary.implied_volatility
        iv_pct = iv * 100
        checks.append(_check(
            "Implied Volatility Level", IV_LEVEL_LADDER, iv, 0.50,
            (
                f"Normal volatility - IV at {iv_pct:.1f}%",
                f"Elevated volatility - IV at {iv_pct:.1f}%",
                f"EXTREME VOLATILITY - IV at {iv_pct:.1f}% - do not sell options",
            ),
            {"iv_pct": round(iv_pct, 1), "volatility_source": primary.volatility_source.value},
            ladder_value=iv_pct,
        ))

    # 5. IV vs historical volatility
    if primary is not None:
        hv = (short_call.historical_volatility if short_call else 0.0) or (
            short_put.historical_volatility if short_put else 0.0
        )
        if hv > 0:
            ratio = primary.implied_volatility / hv
            checks.append(_check(
                "IV vs Historical Volatility", IV_HV_LADDER, ratio, 1.5,
                (
                    f"IV reasonable vs history - {ratio:.2f}x HV",
                    f"IV elevated vs history - {ratio:.2f}x HV",
                    f"IV EXTREMELY ELEVATED - {ratio:.2f}x historical volatility",
                ),
                {
                    "iv": round(primary.implied_volatility * 100, 1),
                    "hv": round(hv * 100, 1),
                    "ratio": round(ratio, 2),
                },
            ))

    # 6. VIX
    vix = market.market.vix
    if vix is not None:
        checks.append(_check(
            "Market Volatility (VIX)", VIX_LADDER, vix, 20,
            (
                f"Normal market volatility - VIX at {vix:.2f}",
                f"Market volatility elevated - VIX at {vix:.2f}",
                f"MARKET FEAR ELEVATED - VIX at {vix:.2f}",
            ),
            {
                "vix_level": round(vix, 2),
                "vix_interpretation": (market.market.vix_level or classify_vix(vix)).value,
            },
        ))

    # 7. Market direction
    change = market.market.spy_change_percent
    if change is not None:
        checks.append(_check(
            "Market Direction (SPY)", MARKET_DIRECTION_LADDER, change, 1.0,
            (
                f"Market stable - SPY {_signed(change)}%",
                f"Market moving - SPY {_signed(change)}%",
                f"Strong market movement - SPY {_signed(change)}%",
            ),
            {"spy_change_pct": round(change, 2), "market_strength": market.market.market_strength.value},
        ))

    # 8. Liquidity
    liquid_leg = next(
        (p for p in (short_call, short_put) if p is not None and p.bid > 0),
        None,
    )
    if liquid_leg is not None:
        spread_pct = liquid_leg.bid_ask_spread / liquid_leg.mid * 100 if liquid_leg.mid > 0 else 0.0
        assessment = analyze_option_liquidity({
            "bid": liquid_leg.bid,
            "ask": liquid_leg.ask,
            "volume": liquid_leg.volume,
            "open_interest": liquid_leg.open_interest,
        })
        checks.append(_check(
            "Liquidity - Bid/Ask Spread", SPREAD_LADDER, spread_pct, 10,
            (
                f"Good liquidity - {spread_pct:.1f}% spread",
                f"Wide spread - {spread_pct:.1f}%",
                f"POOR LIQUIDITY - {spread_pct:.1f}% spread, difficult to exit",
            ),
            {
                "spread_pct": round(spread_pct, 1),
                "bid": liquid_leg.bid,
                "ask": liquid_leg.ask,
                "volume": liquid_leg.volume,
                "open_interest": liquid_leg.open_interest,
                "liquidity": assessment.model_dump(mode="json"),
            },
        ))

    # 9. Days to expiration
    if primary is not None:
        dte = primary.days_to_expiration
        checks.append(_check(
            "Days to Expiration", DTE_LADDER, dte, 7,
            (
                f"Adequate time - {dte} days to expiration",
                f"Short expiration - {dte} days",
                f"Very short dated - only {dte} days, high gamma risk",
            ),
            {"dte": dte, "expiration": expiration},
        ))

    return checks


# =============================================================================
# REDUCTION
# =============================================================================


def reduce_overall_status(checks: list[ValidationCheck]) -> OverallStatus:
    """Severity reduction: any critical failure rejects the trade."""
    failures = [c for c in checks if c.status == FAIL]
    warnings = [c for c in checks if c.status == WARNING]

    if any(c.severity == Severity.CRITICAL for c in failures):
        return OverallStatus.REJECTED
    if failures:
        return OverallStatus.HIGH_RISK
    if len(warnings) > 2:
        return OverallStatus.MODERATE_RISK
    if warnings:
        return OverallStatus.LOW_RISK
    return OverallStatus.APPROVED


def summarize_checks(checks: list[ValidationCheck]) -> ValidationSummary:
    failures = [c for c in checks if c.status == FAIL]
    return ValidationSummary(
        total_checks=len(checks),
        passed=sum(1 for c in checks if c.status == PASS),
        warnings=sum(1 for c in checks if c.status == WARNING),
        failures=len(failures),
        critical_failures=sum(1 for c in failures if c.severity == Severity.CRITICAL),
    )
