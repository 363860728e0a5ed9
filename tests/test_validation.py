from __future__ import annotations

import pydantic
import pytest

from tests.conftest import make_daily_bars, make_market_snapshot, make_option_snapshot
from tradecheck.schemas.market import OptionType
from tradecheck.schemas.validation import (
    CheckStatus,
    OverallStatus,
    Severity,
    StrategyType,
    TradeStrikes,
    ValidationCheck,
    ValidationOptions,
)
from tradecheck.services.base import TradeValidationError
from tradecheck.services.probability.service import compute_strike_metrics
from tradecheck.services.validation.recommendation import generate_recommendation
from tradecheck.services.validation.rules import (
    BUFFER_LADDER,
    DTE_LADDER,
    MARKET_DIRECTION_LADDER,
    build_checks,
    evaluate_ladder,
    reduce_overall_status,
    summarize_checks,
)
from tradecheck.services.validation.interface import TradeValidationRequest
from tradecheck.services.validation.service import TradeValidationService, get_validation_service

IRON_CONDOR = TradeStrikes(short_call=110, long_call=115, short_put=90, long_put=85)


def _check(status: CheckStatus, severity: Severity, name: str = "Check") -> ValidationCheck:
    return ValidationCheck(
        name=name,
        status=status,
        severity=severity,
        value=1.0,
        threshold=1.0,
        details={"message": f"{name} {status.value}"},
    )


def _probability(strike: float, option_type: OptionType, iv: float = 0.20, dte: int = 30):
    return compute_strike_metrics(
        strike=strike,
        option_type=option_type,
        spot=100.0,
        dte=dte,
        bars=make_daily_bars(),
        snapshot=make_option_snapshot(strike, option_type, iv=iv),
        risk_free_rate=0.045,
    )


# =============================================================================
# LADDERS & REDUCTION
# =============================================================================


def test_first_matching_ladder_row_wins() -> None:
    assert evaluate_ladder(BUFFER_LADDER, 3.0) == (CheckStatus.PASS, Severity.INFO)
    assert evaluate_ladder(BUFFER_LADDER, 2.5) == (CheckStatus.WARNING, Severity.HIGH)
    assert evaluate_ladder(BUFFER_LADDER, 1.0) == (CheckStatus.FAIL, Severity.CRITICAL)
    assert evaluate_ladder(MARKET_DIRECTION_LADDER, -1.2) == (CheckStatus.WARNING, Severity.MEDIUM)
    assert evaluate_ladder(DTE_LADDER, 2) == (CheckStatus.FAIL, Severity.HIGH)


@pytest.mark.parametrize(
    ("checks", "expected"),
    [
        ([], OverallStatus.APPROVED),
        ([_check(CheckStatus.PASS, Severity.INFO)], OverallStatus.APPROVED),
        ([_check(CheckStatus.WARNING, Severity.HIGH)] * 2, OverallStatus.LOW_RISK),
        ([_check(CheckStatus.WARNING, Severity.MEDIUM)] * 3, OverallStatus.MODERATE_RISK),
        (
            [_check(CheckStatus.FAIL, Severity.HIGH)] + [_check(CheckStatus.WARNING, Severity.HIGH)] * 4,
            OverallStatus.HIGH_RISK,
        ),
        (
            [_check(CheckStatus.PASS, Severity.INFO)] * 8 + [_check(CheckStatus.FAIL, Severity.CRITICAL)],
            OverallStatus.REJECTED,
        ),
    ],
)
def test_reduce_overall_status(checks: list[ValidationCheck], expected: OverallStatus) -> None:
    assert reduce_overall_status(checks) == expected


def test_summary_counts() -> None:
    checks = [
        _check(CheckStatus.PASS, Severity.INFO),
        _check(CheckStatus.WARNING, Severity.MEDIUM),
        _check(CheckStatus.FAIL, Severity.HIGH),
        _check(CheckStatus.FAIL, Severity.CRITICAL),
    ]

    summary = summarize_checks(checks)

    assert summary.total_checks == 4
    assert summary.passed == 1
    assert summary.warnings == 1
    assert summary.failures == 2
    assert summary.critical_failures == 1


# =============================================================================
# CHECK BATTERY
# =============================================================================


def test_without_short_strikes_only_market_checks_run() -> None:
    checks = build_checks(make_market_snapshot(), TradeStrikes(long_call=110), {}, "2026-02-01")

    assert [c.name for c in checks] == ["Market Volatility (VIX)", "Market Direction (SPY)"]
    assert all("message" in c.details for c in checks)


def test_full_battery_order() -> None:
    probabilities = {
        "short_call": _probability(110, OptionType.CALL),
        "short_put": _probability(90, OptionType.PUT),
    }

    checks = build_checks(make_market_snapshot(), IRON_CONDOR, probabilities, "2026-02-01")

    assert [c.name for c in checks] == [
        "Short Call Buffer",
        "Short Put Buffer",
        "Short Call - Probability of Touch",
        "Short Put - Probability of Touch",
        "Short Call - ATR Distance",
        "Short Put - ATR Distance",
        "Implied Volatility Level",
        "IV vs Historical Volatility",
        "Market Volatility (VIX)",
        "Market Direction (SPY)",
        "Liquidity - Bid/Ask Spread",
        "Days to Expiration",
    ]
    assert all(c.status == CheckStatus.PASS for c in checks)

    liquidity = checks[10]
    assert liquidity.details["liquidity"]["quality"] == "GOOD"
    assert liquidity.value == pytest.approx(4.878, abs=1e-3)


def test_extreme_implied_volatility_fails_critically() -> None:
    probabilities = {"short_put": _probability(90, OptionType.PUT, iv=0.80)}

    checks = build_checks(make_market_snapshot(), TradeStrikes(short_put=90), probabilities, "2026-02-01")
    iv_check = next(c for c in checks if c.name == "Implied Volatility Level")

    assert iv_check.value == pytest.approx(0.80)
    assert iv_check.status == CheckStatus.FAIL
    assert iv_check.severity == Severity.CRITICAL
    assert reduce_overall_status(checks) == OverallStatus.REJECTED


def test_short_dte_and_high_vix() -> None:
    probabilities = {"short_call": _probability(110, OptionType.CALL, dte=2)}

    checks = build_checks(
        make_market_snapshot(vix=22), TradeStrikes(short_call=110), probabilities, "2026-01-04"
    )
    by_name = {c.name: c for c in checks}

    assert by_name["Days to Expiration"].status == CheckStatus.FAIL
    assert by_name["Days to Expiration"].severity == Severity.HIGH
    assert by_name["Market Volatility (VIX)"].status == CheckStatus.WARNING


# =============================================================================
# RECOMMENDATION
# =============================================================================


def test_rejected_recommendation_lists_critical_failures_only() -> None:
    checks = [
        _check(CheckStatus.FAIL, Severity.CRITICAL, "Short Call Buffer"),
        _check(CheckStatus.FAIL, Severity.HIGH, "Days to Expiration"),
        _check(CheckStatus.WARNING, Severity.MEDIUM, "Market Direction (SPY)"),
    ]

    recommendation = generate_recommendation(OverallStatus.REJECTED, checks, {})

    assert recommendation.action == "DO NOT ENTER TRADE"
    assert recommendation.confidence == "HIGH"
    assert [i.check for i in recommendation.issues] == ["Short Call Buffer"]
    assert recommendation.key_metrics is None


def test_low_risk_recommendation_carries_key_metrics() -> None:
    checks = [_check(CheckStatus.WARNING, Severity.MEDIUM, "Market Direction (SPY)")]
    probabilities = {"short_call": _probability(110, OptionType.CALL)}

    recommendation = generate_recommendation(OverallStatus.LOW_RISK, checks, probabilities)

    assert recommendation.action == "APPROVED - Minor Cautions"
    assert [i.check for i in recommendation.issues] == ["Market Direction (SPY)"]
    assert recommendation.key_metrics is not None
    assert recommendation.key_metrics["short_call"].distance_atr == "5.00 ATR"


# =============================================================================
# SERVICE
# =============================================================================


@pytest.mark.asyncio
async def test_iron_condor_is_approved(provider, expiration) -> None:
    service = TradeValidationService(provider)

    report = await service.validate_trade("aapl", StrategyType.IRON_CONDOR, IRON_CONDOR, expiration)

    assert report.symbol == "AAPL"
    assert report.strategy == "iron_condor"
    assert report.overall_status == OverallStatus.APPROVED
    assert report.summary.total_checks == 12
    assert report.summary.passed == 12
    assert set(report.probabilities) == {"short_call", "long_call", "short_put", "long_put"}
    assert report.recommendation.action == "APPROVED - GREEN LIGHT"
    assert set(report.recommendation.key_metrics) == {"short_call", "short_put"}
    assert report.market_structure is None


@pytest.mark.asyncio
async def test_strike_too_close_is_rejected(provider, expiration) -> None:
    provider.snapshots[(101.0, OptionType.CALL)] = make_option_snapshot(101, OptionType.CALL)

    report = await TradeValidationService(provider).validate_trade(
        "AAPL", "call_credit_spread", {"short_call": 101, "long_call": 110}, expiration
    )

    assert report.overall_status == OverallStatus.REJECTED
    assert report.summary.critical_failures >= 1
    assert report.recommendation.action == "DO NOT ENTER TRADE"
    assert "Short Call Buffer" in [i.check for i in report.recommendation.issues]


@pytest.mark.asyncio
async def test_market_structure_is_attached_when_requested(provider, expiration, max_pain_chain) -> None:
    provider.chain = {expiration: max_pain_chain["2026-02-20"]}

    report = await TradeValidationService(provider).validate_trade(
        "AAPL",
        StrategyType.IRON_CONDOR,
        IRON_CONDOR,
        expiration,
        ValidationOptions(include_market_structure=True),
    )

    assert report.market_structure is not None
    assert report.market_structure.max_pain.strike == 100
    assert report.overall_status == OverallStatus.APPROVED


@pytest.mark.asyncio
async def test_market_structure_failure_does_not_abort(provider, expiration) -> None:
    provider.failing = {"get_option_chain_snapshot"}

    report = await TradeValidationService(provider).validate_trade(
        "AAPL",
        StrategyType.IRON_CONDOR,
        IRON_CONDOR,
        expiration,
        ValidationOptions(include_market_structure=True),
    )

    assert report.market_structure is None


@pytest.mark.asyncio
async def test_market_data_failure_aborts(provider, expiration) -> None:
    provider.failing_quotes = {"AAPL"}

    with pytest.raises(TradeValidationError) as exc_info:
        await TradeValidationService(provider).validate_trade(
            "AAPL", StrategyType.IRON_CONDOR, IRON_CONDOR, expiration
        )

    assert "Trade validation failed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_contract_aborts(provider, expiration) -> None:
    with pytest.raises(TradeValidationError):
        await TradeValidationService(provider).validate_trade(
            "AAPL", StrategyType.STRANGLE, TradeStrikes(short_call=120, short_put=90), expiration
        )


@pytest.mark.asyncio
async def test_execute_accepts_request_and_health_checks(provider, expiration) -> None:
    service = get_validation_service(provider)

    report = await service.execute(
        TradeValidationRequest(
            symbol="AAPL",
            strategy_type=StrategyType.STRANGLE,
            strikes=TradeStrikes(short_call=110, short_put=90),
            expiration=expiration,
        )
    )

    assert report.strategy == "strangle"
    assert report.summary.total_checks == 12
    assert await service.health_check() is True

    provider.failing_quotes = {"SPY"}
    assert await service.health_check() is False


def test_missing_market_feeds_omit_market_checks() -> None:
    snapshot = make_market_snapshot(vix=None, spy_change_percent=None)

    checks = build_checks(snapshot, TradeStrikes(long_call=110), {}, "2026-02-01")

    assert checks == []


@pytest.mark.asyncio
async def test_unavailable_vix_and_proxy_are_not_scored(provider, expiration) -> None:
    provider.failing_quotes = {"^VIX", "SPY"}

    report = await TradeValidationService(provider).validate_trade(
        "AAPL", StrategyType.IRON_CONDOR, IRON_CONDOR, expiration
    )
    names = [c.name for c in report.checks]

    assert report.market_data.market.vix is None
    assert "Market Volatility (VIX)" not in names
    assert "Market Direction (SPY)" not in names
    assert report.summary.total_checks == 10


@pytest.mark.asyncio
async def test_report_is_read_only_and_still_serializes(provider, expiration) -> None:
    report = await TradeValidationService(provider).validate_trade(
        "AAPL", StrategyType.IRON_CONDOR, IRON_CONDOR, expiration
    )
    liquidity = next(c for c in report.checks if c.name == "Liquidity - Bid/Ask Spread")

    with pytest.raises(pydantic.ValidationError):
        report.overall_status = OverallStatus.REJECTED
    with pytest.raises(TypeError):
        report.checks[0].details["message"] = "edited"
    with pytest.raises(TypeError):
        liquidity.details["liquidity"]["quality"] = "POOR"
    with pytest.raises(TypeError):
        report.probabilities["short_call"] = report.probabilities["short_put"]
    assert isinstance(report.checks, tuple)

    dumped = report.model_dump(mode="json")
    dumped_liquidity = next(c for c in dumped["checks"] if c["name"] == "Liquidity - Bid/Ask Spread")
    assert isinstance(dumped_liquidity["details"]["liquidity"], dict)
    assert dumped_liquidity["details"]["liquidity"]["quality"] == "GOOD"
    assert dumped["probabilities"]["short_call"]["strike"] == 110
    assert dumped["recommendation"]["key_metrics"]["short_put"]["distance_atr"]
