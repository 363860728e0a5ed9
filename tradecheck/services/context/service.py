"""
Market Context Service Implementation

Aggregates the underlying, the broad market, volatility and technicals
into one MarketSnapshot. Fetches run concurrently; only the underlying
quote is allowed to fail the whole call.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Optional, TypeVar

from tradecheck.core.config import settings
from tradecheck.core.market_hours import get_market_session, get_market_today
from tradecheck.schemas.market import (
    Bar,
    IndicatorSeries,
    IntradayMetrics,
    MarketConditions,
    MarketSnapshot,
    MarketStrength,
    OptionContext,
    OptionContractSnapshot,
    Quote,
    RiskEnvironment,
    Technicals,
    UnderlyingContext,
    VixLevel,
    VWAPDistance,
)
from tradecheck.services.base import MarketContextError
from tradecheck.services.context.interface import MarketContextRequest, MarketContextServiceInterface
from tradecheck.services.indicators.calculations import session_range, session_vwap
from tradecheck.services.market_data.interface import MarketDataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# CLASSIFIERS
# =============================================================================


def classify_vix(vix: float) -> VixLevel:
    """Bucket VIX at 15 / 20 / 30."""
    if vix < 15:
        return VixLevel.LOW
    if vix < 20:
        return VixLevel.NORMAL
    if vix < 30:
        return VixLevel.ELEVATED
    return VixLevel.HIGH


def assess_market_strength(
    proxy: Optional[Quote],
    high_volume_threshold: float = settings.high_volume_threshold,
) -> MarketStrength:
    """Direction and conviction of the broad market from its proxy quote."""
    if proxy is None:
        return MarketStrength.NEUTRAL

    change_pct = proxy.change_percent
    is_high_volume = proxy.volume > high_volume_threshold

    if change_pct > 1.0 and is_high_volume:
        return MarketStrength.STRONG_BULLISH
    if change_pct > 0.5:
        return MarketStrength.MODERATE_BULLISH
    if change_pct > 0:
        return MarketStrength.WEAK_BULLISH
    if change_pct < -1.0 and is_high_volume:
        return MarketStrength.STRONG_BEARISH
    if change_pct < -0.5:
        return MarketStrength.MODERATE_BEARISH
    if change_pct < 0:
        return MarketStrength.WEAK_BEARISH
    return MarketStrength.NEUTRAL


def assess_risk_environment(vix: Optional[float], strength: MarketStrength) -> RiskEnvironment:
    is_high_vix = vix is not None and vix > 25

    if is_high_vix and strength.is_strong:
        return RiskEnvironment.VERY_HIGH
    if is_high_vix:
        return RiskEnvironment.HIGH
    if strength.is_strong:
        return RiskEnvironment.MODERATE
    return RiskEnvironment.NORMAL


def vwap_distance(price: float, vwap: float) -> VWAPDistance:
    distance = price - vwap
    distance_pct = (distance / vwap) * 100 if vwap > 0 else 0.0

    if distance_pct > 2:
        interpretation = "Significantly above VWAP"
    elif distance_pct < -2:
        interpretation = "Significantly below VWAP"
    else:
        interpretation = "Near VWAP"

    return VWAPDistance(
        dollars=distance,
        percent=distance_pct,
        above_vwap=distance > 0,
        interpretation=interpretation,
    )


def build_intraday_metrics(price: float, bars: list[Bar]) -> IntradayMetrics:
    high, low, range_, range_pct, session_open = session_range(bars)
    vwap = session_vwap(bars)
    return IntradayMetrics(
        high=high,
        low=low,
        range=range_,
        range_pct=range_pct,
        open=session_open,
        vwap=vwap,
        distance_from_vwap=vwap_distance(price, vwap),
        bars_count=len(bars),
    )


def build_technicals(
    price: float,
    rsi: Optional[IndicatorSeries],
    sma_20: Optional[IndicatorSeries],
    sma_50: Optional[IndicatorSeries],
) -> Technicals:
    def latest(series: Optional[IndicatorSeries]) -> Optional[float]:
        return series.latest if series is not None else None

    def percent_from(sma_value: Optional[float]) -> Optional[float]:
        if not sma_value:
            return None
        return (price - sma_value) / sma_value * 100

    sma_20_value = latest(sma_20)
    sma_50_value = latest(sma_50)
    return Technicals(
        rsi=latest(rsi),
        sma_20=sma_20_value,
        sma_50=sma_50_value,
        price_vs_sma20=percent_from(sma_20_value),
        price_vs_sma50=percent_from(sma_50_value),
    )


def build_option_context(snapshot: OptionContractSnapshot) -> OptionContext:
    quote = snapshot.last_quote
    return OptionContext(
        strike=snapshot.details.strike_price,
        expiration=snapshot.details.expiration_date,
        contract_type=snapshot.details.contract_type,
        bid=quote.bid_price if quote else None,
        ask=quote.ask_price if quote else None,
        mid=quote.mid_price if quote else None,
        last=snapshot.last_trade.price if snapshot.last_trade else None,
        implied_volatility=snapshot.implied_volatility,
        greeks=snapshot.greeks,
        volume=snapshot.day.volume if snapshot.day else None,
        open_interest=snapshot.open_interest,
    )


# =============================================================================
# SERVICE
# =============================================================================


class MarketContextService(MarketContextServiceInterface):
    """
    Market Context Aggregator.

    One fan-out per call, no caching between calls.
    """

    def __init__(self, provider: MarketDataProvider):
        self.provider = provider

    @property
    def name(self) -> str:
        return "MarketContextService"

    async def execute(self, input_data: MarketContextRequest) -> MarketSnapshot:
        return await self.get_complete_market_picture(input_data.symbol, input_data.option_contract)

    async def get_complete_market_picture(
        self,
        symbol: str,
        option_contract: Optional[str] = None,
    ) -> MarketSnapshot:
        symbol = symbol.upper().strip()
        try:
            return await self._build_snapshot(symbol, option_contract)
        except Exception as e:
            logger.error(f"Market picture failed for {symbol}: {e}")
            raise MarketContextError(self.name, f"Failed to get market picture: {e}") from e

    async def health_check(self) -> bool:
        return await self.provider.health_check()

    async def _build_snapshot(self, symbol: str, option_contract: Optional[str]) -> MarketSnapshot:
        today = get_market_today()

        option_fetch: Awaitable[Optional[OptionContractSnapshot]]
        if option_contract:
            option_fetch = self._safe(
                "option snapshot",
                self.provider.get_specific_option_snapshot(symbol, option_contract),
                None,
            )
        else:
            option_fetch = self._none()

        (
            quote,
            intraday_bars,
            vix_quote,
            proxy_quote,
            rsi_series,
            sma_20,
            sma_50,
            option_snapshot,
        ) = await asyncio.gather(
            self.provider.get_quote(symbol),
            self._safe(
                "intraday bars",
                self.provider.get_intraday_bars(
                    symbol,
                    settings.intraday_bar_multiplier,
                    settings.intraday_bar_timespan,
                    today,
                ),
                [],
            ),
            self._safe("VIX quote", self.provider.get_quote(settings.vix_symbol), None),
            self._safe("market proxy quote", self.provider.get_quote(settings.market_proxy_symbol), None),
            self._safe("RSI(14)", self.provider.get_rsi(symbol, 14), None),
            self._safe("SMA(20)", self.provider.get_sma(symbol, 20), None),
            self._safe("SMA(50)", self.provider.get_sma(symbol, 50), None),
            option_fetch,
        )

        price = quote.price
        vix = vix_quote.price if vix_quote is not None else None
        strength = assess_market_strength(proxy_quote)

        market = MarketConditions(
            vix=vix,
            vix_level=classify_vix(vix) if vix is not None else None,
            spy_price=proxy_quote.price if proxy_quote else None,
            spy_change=proxy_quote.change if proxy_quote else None,
            spy_change_percent=proxy_quote.change_percent if proxy_quote else None,
            spy_volume=proxy_quote.volume if proxy_quote else None,
            market_strength=strength,
            market_status=quote.market_status or get_market_session().value,
            risk_environment=assess_risk_environment(vix, strength),
        )

        underlying = UnderlyingContext(
            price=price,
            change=quote.change,
            change_percent=quote.change_percent,
            volume=quote.volume,
            intraday=build_intraday_metrics(price, intraday_bars),
            technicals=build_technicals(price, rsi_series, sma_20, sma_50),
        )

        logger.info(
            f"Market picture {symbol}: price={price:.2f} vix={vix} "
            f"strength={strength.value} bars={len(intraday_bars)}"
        )

        return MarketSnapshot(
            timestamp=datetime.now(timezone.utc),
            symbol=symbol,
            underlying=underlying,
            market=market,
            option=build_option_context(option_snapshot) if option_snapshot else None,
        )

    @staticmethod
    async def _safe(label: str, fetch: Awaitable[T], default: T) -> T:
        """Await a secondary fetch, falling back to a neutral default."""
        try:
            return await fetch
        except Exception as e:
            logger.debug(f"{label} unavailable, using default: {e}")
            return default

    @staticmethod
    async def _none() -> None:
        return None


# Singleton instance
_service_instance: Optional[MarketContextService] = None


def get_market_context_service(provider: Optional[MarketDataProvider] = None) -> MarketContextService:
    """Get or create market context service instance."""
    global _service_instance
    if provider is not None:
        return MarketContextService(provider)
    if _service_instance is None:
        from tradecheck.services.market_data.yahoo_provider import get_market_data_provider

        _service_instance = MarketContextService(get_market_data_provider())
    return _service_instance
