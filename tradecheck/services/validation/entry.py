"""
Entry Gate

A lighter, snapshot-only go/no-go decision: no probabilities, just the
live market picture against the short strikes.
"""

from typing import Optional, Union

from tradecheck.schemas.market import MarketSnapshot
from tradecheck.schemas.validation import (
    CheckStatus,
    EntryAssessment,
    EntryCheck,
    EntryDecision,
    EntryRecommendation,
    EntrySummary,
    Severity,
    TradeStrikes,
)

# Session labels that count as regular trading
OPEN_MARKET_STATUSES = {"open", "regular_trading"}


def _format_optional(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else "n/a"


def _passed(check: str, message: str) -> EntryCheck:
    return EntryCheck(check=check, status=CheckStatus.PASS, severity=Severity.INFO, message=message)


def _warning(check: str, severity: Severity, message: str, should_block: bool = False) -> EntryCheck:
    return EntryCheck(
        check=check,
        status=CheckStatus.FAIL if should_block else CheckStatus.WARNING,
        severity=severity,
        message=message,
        should_block=should_block,
    )


def should_enter_trade(
    market_data: MarketSnapshot,
    strikes: Union[TradeStrikes, dict],
) -> EntryDecision:
    """Evaluate whether live conditions allow entering the position now."""
    if not isinstance(strikes, TradeStrikes):
        strikes = TradeStrikes.model_validate(strikes)

    warnings: list[EntryCheck] = []
    passed: list[EntryCheck] = []
    price = market_data.underlying.price
    market = market_data.market

    # 1. Price vs short strikes
    if strikes.short_call is not None:
        distance = (strikes.short_call - price) / price * 100 if price > 0 else 0.0
        if price >= strikes.short_call * 0.98:
            warnings.append(_warning(
                "Price vs Short Call",
                Severity.CRITICAL,
                f"DANGER: Stock at {price:.2f}, only {distance:.2f}% from short call {strikes.short_call:g}",
                should_block=True,
            ))
        else:
            passed.append(_passed("Price vs Short Call", f"Stock {distance:.2f}% below short call"))

    if strikes.short_put is not None:
        distance = (price - strikes.short_put) / price * 100 if price > 0 else 0.0
        if price <= strikes.short_put * 1.02:
            warnings.append(_warning(
                "Price vs Short Put",
                Severity.CRITICAL,
                f"DANGER: Stock at {price:.2f}, only {distance:.2f}% from short put {strikes.short_put:g}",
                should_block=True,
            ))
        else:
            passed.append(_passed("Price vs Short Put", f"Stock {distance:.2f}% above short put"))

    # 2. VIX, skipped when the feed was unavailable
    vix = market.vix
    if vix is not None:
        if vix > 25:
            warnings.append(_warning(
                "VIX Level", Severity.HIGH,
                f"WARNING: VIX at {vix:.2f} (>25), high volatility environment",
            ))
        elif vix > 20:
            warnings.append(_warning(
                "VIX Level", Severity.MEDIUM,
                f"CAUTION: VIX at {vix:.2f} (>20), elevated volatility",
            ))
        else:
            passed.append(_passed("VIX Level", f"VIX at {vix:.2f}, normal volatility"))

    # 3. Market direction
    change = market.spy_change_percent
    if change is not None:
        signed = f"{'+' if change > 0 else ''}{change:.2f}"
        if abs(change) > 1.5:
            direction = "upward" if change > 0 else "downward"
            warnings.append(_warning(
                "Market Direction", Severity.MEDIUM,
                f"WARNING: Market showing strong {direction} movement (SPY {signed}%)",
            ))
        else:
            passed.append(_passed("Market Direction", f"Market stable (SPY {signed}%)"))

    # 4. Intraday range
    range_pct = market_data.underlying.intraday.range_pct
    if range_pct > 3.0:
        warnings.append(_warning(
            "Intraday Volatility", Severity.HIGH,
            f"WARNING: Large intraday range ({range_pct:.2f}%), stock moving significantly",
        ))
    else:
        passed.append(_passed("Intraday Volatility", f"Normal intraday range ({range_pct:.2f}%)"))

    # 5. VWAP deviation
    deviation = abs(market_data.underlying.intraday.distance_from_vwap.percent)
    if deviation > 2:
        warnings.append(_warning(
            "VWAP Deviation", Severity.MEDIUM,
            f"Price {deviation:.2f}% from VWAP, potential reversion",
        ))
    else:
        passed.append(_passed("VWAP Deviation", f"Price near VWAP ({deviation:.2f}% deviation)"))

    # 6. Market hours
    status = market.market_status
    if status not in OPEN_MARKET_STATUSES:
        warnings.append(_warning(
            "Market Hours", Severity.MEDIUM,
            f"CAUTION: Market is {status}, consider waiting for regular hours",
        ))
    else:
        passed.append(_passed("Market Hours", "Market is open for regular trading"))

    blocking = [w for w in warnings if w.should_block]
    safe_to_enter = not blocking

    if not safe_to_enter:
        assessment = EntryAssessment.REJECTED
        recommendation = EntryRecommendation(
            action="DO_NOT_ENTER",
            reason="Critical safety checks failed",
            issues=[w.message for w in blocking],
            next_steps=[
                "Wait for conditions to improve",
                "Consider different strikes",
                "Re-evaluate strategy",
            ],
        )
    elif warnings:
        assessment = EntryAssessment.PROCEED_WITH_CAUTION
        recommendation = EntryRecommendation(
            action="PROCEED_WITH_CAUTION",
            reason="Entry permitted but some warnings present",
            issues=[w.message for w in warnings],
            next_steps=[
                "Monitor position closely",
                "Set tight stop losses",
                "Consider reducing position size",
                "Be ready to exit quickly",
            ],
        )
    else:
        assessment = EntryAssessment.APPROVED
        recommendation = EntryRecommendation(
            action="APPROVED",
            reason="All safety checks passed",
            market_conditions=f"VIX: {_format_optional(vix)}, Market: {market.market_strength.value}",
            next_steps=[
                "Execute trade as planned",
                "Set up alerts for strike levels",
                "Monitor daily at close",
            ],
        )

    return EntryDecision(
        safe_to_enter=safe_to_enter,
        overall_assessment=assessment,
        warnings=warnings,
        passed_checks=passed,
        summary=EntrySummary(
            total_checks=len(passed) + len(warnings),
            passed=len(passed),
            warnings=len(warnings) - len(blocking),
            critical=len(blocking),
        ),
        recommendation=recommendation,
    )
