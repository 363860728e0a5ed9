"""
Probability Service Implementation

Black-Scholes probabilities, touch probability, expected move and
ATR distance for a single strike.
PURE MATH after the fetch - compute_strike_metrics is deterministic.
"""

import asyncio
import logging
import math
from datetime import date, timedelta
from typing import Optional, Sequence, Union

from tradecheck.core.config import settings
from tradecheck.core.market_hours import get_market_today
from tradecheck.schemas.market import Bar, OptionContractSnapshot, OptionType
from tradecheck.schemas.probability import (
    ProbabilityResult,
    ProbabilityWarning,
    RiskLevel,
    VolatilitySource,
    WarningSeverity,
)
from tradecheck.services.base import ProbabilityError, ValidationError
from tradecheck.services.indicators.calculations import (
    average_true_range,
    black_scholes_d1_d2,
    normal_cdf,
    realized_volatility,
)
from tradecheck.services.market_data.interface import MarketDataProvider
from tradecheck.services.probability.interface import ProbabilityRequest, ProbabilityServiceInterface

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid option data - missing price or volatility"


# =============================================================================
# RISK GRADING
# =============================================================================


def assess_risk(prob_touch: float, distance_in_atr: float, volatility: float) -> RiskLevel:
    """Grade the strike on touch probability, ATR distance and volatility."""
    if prob_touch > 0.75 or distance_in_atr < 1.0 or volatility > 0.90:
        return RiskLevel.EXTREME
    if prob_touch > 0.60 or distance_in_atr < 1.5 or volatility > 0.60:
        return RiskLevel.HIGH
    if prob_touch > 0.45 or distance_in_atr < 2.0 or volatility > 0.40:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def generate_warnings(
    prob_touch: float,
    distance_in_atr: float,
    volatility: float,
    distance_pct: float,
) -> list[ProbabilityWarning]:
    """At most one warning per metric, the most severe that applies."""
    warnings: list[ProbabilityWarning] = []

    def warn(severity: WarningSeverity, metric: str, message: str, value: float) -> None:
        warnings.append(ProbabilityWarning(severity=severity, metric=metric, message=message, value=value))

    # Probability
    if prob_touch > 0.80:
        warn(WarningSeverity.CRITICAL, "probability", ">80% probability of touching strike - EXTREMELY HIGH RISK", prob_touch)
    elif prob_touch > 0.70:
        warn(WarningSeverity.HIGH, "probability", ">70% probability of touching strike - HIGH RISK", prob_touch)
    elif prob_touch > 0.60:
        warn(WarningSeverity.MEDIUM, "probability", ">60% probability of touching strike - MODERATE RISK", prob_touch)

    # Distance
    if distance_in_atr < 1.0:
        warn(WarningSeverity.CRITICAL, "distance", "Strike within 1 ATR - very close to current price", distance_in_atr)
    elif distance_in_atr < 1.5:
        warn(WarningSeverity.HIGH, "distance", "Strike within 1.5 ATR - inside the typical daily range", distance_in_atr)
    elif distance_in_atr < 2.0:
        warn(WarningSeverity.MEDIUM, "distance", "Strike within 2 ATR - close to normal daily movement", distance_in_atr)

    # Volatility
    iv_pct = volatility * 100
    if volatility > 0.90:
        warn(WarningSeverity.CRITICAL, "volatility", f"EXTREME VOLATILITY (IV {iv_pct:.0f}%) - avoid selling options", volatility)
    elif volatility > 0.60:
        warn(WarningSeverity.HIGH, "volatility", f"High implied volatility ({iv_pct:.0f}%) - expect large moves", volatility)
    elif volatility > 0.40:
        warn(WarningSeverity.MEDIUM, "volatility", f"Elevated volatility ({iv_pct:.0f}%) - monitor closely", volatility)

    # Proximity
    if distance_pct < 1:
        warn(WarningSeverity.CRITICAL, "proximity", "Stock within 1% of strike - immediate danger zone", distance_pct)
    elif distance_pct < 2:
        warn(WarningSeverity.HIGH, "proximity", "Stock within 2% of strike - entering danger zone", distance_pct)
    elif distance_pct < 3:
        warn(WarningSeverity.MEDIUM, "proximity", "Stock within 3% of strike - close to warning level", distance_pct)

    return warnings


# =============================================================================
# PURE CORE
# =============================================================================


def days_to_expiration(expiration: Union[str, date], as_of: date) -> int:
    """Calendar days from as_of to expiration, floored at 0."""
    expiry = date.fromisoformat(expiration) if isinstance(expiration, str) else expiration
    return max((expiry - as_of).days, 0)


def compute_strike_metrics(
    *,
    strike: float,
    option_type: OptionType,
    spot: float,
    dte: int,
    bars: Sequence[Bar],
    snapshot: OptionContractSnapshot,
    risk_free_rate: float,
) -> ProbabilityResult:
    """
    Probability metrics for one strike from already-fetched inputs.

    Raises ValueError when there is no price or no usable volatility.
    """
    implied = snapshot.implied_volatility or 0.0
    historical = realized_volatility(bars)

    if implied > 0:
        sigma, source = implied, VolatilitySource.IMPLIED
    else:
        sigma, source = historical, VolatilitySource.HISTORICAL

    if spot <= 0 or sigma <= 0:
        raise ValueError(INVALID_INPUT_MESSAGE)

    # Same-day expirations are priced with one day left
    years = max(dte, 1) / 365
    d1, d2 = black_scholes_d1_d2(spot, strike, sigma, years, risk_free_rate)

    if option_type == OptionType.CALL:
        prob_itm = normal_cdf(d2)
        breached = strike <= spot
    else:
        prob_itm = normal_cdf(-d2)
        breached = strike >= spot
    prob_itm = min(max(prob_itm, 0.0), 1.0)

    # Reflection principle; already at or through the strike counts as touched
    prob_touch = 1.0 if breached else min(2 * prob_itm, 1.0)

    expected_move = sigma * math.sqrt(years) * spot
    atr = average_true_range(bars, 14)

    distance = abs(spot - strike)
    distance_in_atr = distance / atr if atr > 0 else 0.0
    distance_in_stddev = distance / expected_move if expected_move > 0 else 0.0
    distance_pct = distance / spot * 100

    quote = snapshot.last_quote
    bid = (quote.bid_price if quote else None) or 0.0
    ask = (quote.ask_price if quote else None) or 0.0
    mid = (quote.mid_price if quote else None) or ((bid + ask) / 2 if bid and ask else 0.0)
    spread = ask - bid if quote and quote.bid_price is not None and quote.ask_price is not None else 0.0

    return ProbabilityResult(
        strike=strike,
        option_type=option_type,
        current_price=spot,
        days_to_expiration=dte,
        time_to_expiry_years=years,
        prob_itm=prob_itm,
        prob_otm=1 - prob_itm,
        prob_touch=prob_touch,
        expected_move=expected_move,
        expected_move_pct=expected_move / spot * 100,
        range_1sd=(spot - expected_move, spot + expected_move),
        range_2sd=(spot - 2 * expected_move, spot + 2 * expected_move),
        distance_to_strike=distance,
        distance_in_percent=distance_pct,
        distance_in_atr=distance_in_atr,
        distance_in_stddev=distance_in_stddev,
        implied_volatility=sigma,
        historical_volatility=historical,
        volatility_source=source,
        iv_hv_ratio=sigma / historical if historical > 0 else 0.0,
        atr_14d=atr,
        greeks=snapshot.greeks,
        bid=bid,
        ask=ask,
        mid=mid,
        bid_ask_spread=spread,
        volume=(snapshot.day.volume if snapshot.day else None) or 0.0,
        open_interest=snapshot.open_interest or 0.0,
        risk_level=assess_risk(prob_touch, distance_in_atr, sigma),
        warnings=generate_warnings(prob_touch, distance_in_atr, sigma, distance_pct),
        d1=d1,
        d2=d2,
        risk_free_rate=risk_free_rate,
    )


# =============================================================================
# SERVICE
# =============================================================================


class ProbabilityService(ProbabilityServiceInterface):
    """
    Strike Probability Engine.

    Fetches the option snapshot and recent daily bars concurrently,
    then runs the pure calculation.
    """

    def __init__(self, provider: MarketDataProvider, risk_free_rate: Optional[float] = None):
        self.provider = provider
        self.risk_free_rate = settings.risk_free_rate if risk_free_rate is None else risk_free_rate

    @property
    def name(self) -> str:
        return "ProbabilityService"

    async def execute(self, input_data: ProbabilityRequest) -> ProbabilityResult:
        return await self.calculate_probabilities(
            input_data.symbol,
            input_data.strike,
            input_data.expiration,
            input_data.option_type,
            input_data.as_of,
        )

    async def calculate_probabilities(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: Union[OptionType, str],
        as_of: Optional[date] = None,
    ) -> ProbabilityResult:
        symbol = symbol.upper().strip()
        try:
            option_type = OptionType(option_type)
        except ValueError as e:
            raise ValidationError(self.name, f"Unknown option type: {option_type}") from e

        as_of = as_of or get_market_today()

        try:
            snapshot, bars = await asyncio.gather(
                self.provider.get_option_snapshot(symbol, strike, expiration, option_type),
                self.provider.get_historical_bars(
                    symbol,
                    1,
                    "day",
                    as_of - timedelta(days=settings.history_lookback_days),
                    as_of,
                ),
            )
            spot = snapshot.underlying_price or (bars[-1].close if bars else 0.0)

            result = compute_strike_metrics(
                strike=strike,
                option_type=option_type,
                spot=spot,
                dte=days_to_expiration(expiration, as_of),
                bars=bars,
                snapshot=snapshot,
                risk_free_rate=self.risk_free_rate,
            )
        except Exception as e:
            logger.error(f"Probability calculation failed for {symbol} {strike} {option_type.value}: {e}")
            raise ProbabilityError(self.name, f"Failed to calculate probabilities: {e}") from e

        logger.debug(
            f"{symbol} {strike} {option_type.value}: touch={result.prob_touch:.3f} "
            f"itm={result.prob_itm:.3f} atr_dist={result.distance_in_atr:.2f} risk={result.risk_level.value}"
        )
        return result

    async def health_check(self) -> bool:
        return await self.provider.health_check()


# Singleton instance
_service_instance: Optional[ProbabilityService] = None


def get_probability_service(provider: Optional[MarketDataProvider] = None) -> ProbabilityService:
    """Get or create probability service instance."""
    global _service_instance
    if provider is not None:
        return ProbabilityService(provider)
    if _service_instance is None:
        from tradecheck.services.market_data.yahoo_provider import get_market_data_provider

        _service_instance = ProbabilityService(get_market_data_provider())
    return _service_instance
