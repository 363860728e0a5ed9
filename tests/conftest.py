from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from tradecheck.core.market_hours import get_market_today
from tradecheck.schemas.market import (
    Bar,
    ChainOption,
    ChainPrice,
    ExpirationChain,
    Greeks,
    IndicatorSeries,
    IndicatorValue,
    IntradayMetrics,
    MarketConditions,
    MarketSnapshot,
    MarketStrength,
    OptionChain,
    OptionContractDetails,
    OptionContractSnapshot,
    OptionDay,
    OptionLastQuote,
    OptionType,
    Quote,
    RiskEnvironment,
    Technicals,
    UnderlyingContext,
)
from tradecheck.services.base import ExternalAPIError
from tradecheck.services.context.service import classify_vix, vwap_distance
from tradecheck.services.market_data.interface import MarketDataProvider

# Daily closes cycle with a constant 2.0 true range
CLOSE_CYCLE = [100.0, 101.0, 100.0, 99.0]


def make_daily_bars(count: int = 30) -> list[Bar]:
    start = datetime(2026, 1, 1)
    bars = []
    for i in range(count):
        close = CLOSE_CYCLE[i % len(CLOSE_CYCLE)]
        bars.append(
            Bar(
                timestamp=start + timedelta(days=i),
                open=close,
                high=close + 1.0,
                low=close - 1.0,
                close=close,
                volume=1_000_000,
            )
        )
    return bars


def make_intraday_bars() -> list[Bar]:
    return [
        Bar(o=100.0, h=100.5, l=99.5, c=100.0, v=1000),
        Bar(o=100.0, h=101.0, l=99.8, c=100.6, v=2000),
        Bar(o=100.6, h=100.9, l=99.9, c=100.2, v=1500),
    ]


def make_option_snapshot(
    strike: float,
    option_type: OptionType,
    *,
    iv: Optional[float] = 0.20,
    bid: float = 1.00,
    ask: float = 1.05,
    volume: float = 800,
    open_interest: float = 2500,
    underlying_price: Optional[float] = 100.0,
) -> OptionContractSnapshot:
    return OptionContractSnapshot(
        details=OptionContractDetails(contract_type=option_type, strike_price=strike),
        last_quote=OptionLastQuote(bid_price=bid, ask_price=ask, mid_price=(bid + ask) / 2),
        implied_volatility=iv,
        greeks=Greeks(delta=0.2, gamma=0.03),
        day=OptionDay(volume=volume),
        open_interest=open_interest,
        underlying_price=underlying_price,
    )


def make_chain_option(
    strike: float,
    open_interest: float,
    *,
    gamma: Optional[float] = None,
    volume: Optional[float] = None,
    last: Optional[float] = None,
) -> ChainOption:
    return ChainOption(
        strike=strike,
        price=ChainPrice(open_interest=open_interest, volume=volume, last=last),
        greeks=Greeks(gamma=gamma),
    )


def make_market_snapshot(
    *,
    price: float = 100.0,
    vix: Optional[float] = 15.0,
    spy_change_percent: Optional[float] = 0.2,
    range_pct: float = 1.0,
    vwap: Optional[float] = None,
    market_status: str = "open",
) -> MarketSnapshot:
    vwap = price if vwap is None else vwap
    return MarketSnapshot(
        timestamp=datetime(2026, 1, 2, 15, 0),
        symbol="AAPL",
        underlying=UnderlyingContext(
            price=price,
            intraday=IntradayMetrics(
                high=price * (1 + range_pct / 200),
                low=price * (1 - range_pct / 200),
                range=price * range_pct / 100,
                range_pct=range_pct,
                open=price,
                vwap=vwap,
                distance_from_vwap=vwap_distance(price, vwap),
                bars_count=10,
            ),
            technicals=Technicals(),
        ),
        market=MarketConditions(
            vix=vix,
            vix_level=classify_vix(vix) if vix is not None else None,
            spy_price=500.0 if spy_change_percent is not None else None,
            spy_change_percent=spy_change_percent,
            market_strength=MarketStrength.WEAK_BULLISH,
            market_status=market_status,
            risk_environment=RiskEnvironment.NORMAL,
        ),
    )


class FakeMarketDataProvider(MarketDataProvider):
    """In-memory provider. Method names in `failing` raise ExternalAPIError."""

    def __init__(self) -> None:
        self.quotes: dict[str, Quote] = {
            "AAPL": Quote(symbol="AAPL", price=100.0, change=0.5, change_percent=0.5, volume=5_000_000, market_status="open"),
            "^VIX": Quote(symbol="^VIX", price=15.0),
            "SPY": Quote(symbol="SPY", price=500.0, change=1.5, change_percent=0.3, volume=60_000_000),
        }
        self.intraday_bars: list[Bar] = make_intraday_bars()
        self.daily_bars: list[Bar] = make_daily_bars()
        self.rsi = IndicatorSeries(values=[IndicatorValue(value=55.0), IndicatorValue(value=52.0)])
        self.smas = {
            20: IndicatorSeries(values=[IndicatorValue(value=98.0)]),
            50: IndicatorSeries(values=[IndicatorValue(value=95.0)]),
        }
        self.snapshots: dict[tuple[float, OptionType], OptionContractSnapshot] = {}
        self.contracts: dict[str, OptionContractSnapshot] = {}
        self.chain: OptionChain = {}
        self.failing: set[str] = set()
        self.failing_quotes: set[str] = set()
        self.calls: list[str] = []
        self.quoted: list[str] = []

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failing:
            raise ExternalAPIError(self.name, f"{method} unavailable")

    async def get_quote(self, symbol: str) -> Quote:
        self._enter("get_quote")
        self.quoted.append(symbol)
        if symbol in self.failing_quotes or symbol not in self.quotes:
            raise ExternalAPIError(self.name, f"No quote for {symbol}")
        return self.quotes[symbol]

    async def get_intraday_bars(self, symbol: str, multiplier: int, timespan: str, day: date) -> list[Bar]:
        self._enter("get_intraday_bars")
        return list(self.intraday_bars)

    async def get_historical_bars(
        self,
        symbol: str,
        multiplier: int,
        timespan: str,
        from_date: date,
        to_date: date,
    ) -> list[Bar]:
        self._enter("get_historical_bars")
        return list(self.daily_bars)

    async def get_rsi(self, symbol: str, window: int = 14) -> IndicatorSeries:
        self._enter("get_rsi")
        return self.rsi

    async def get_sma(self, symbol: str, window: int) -> IndicatorSeries:
        self._enter("get_sma")
        return self.smas[window]

    async def get_specific_option_snapshot(self, symbol: str, contract_id: str) -> OptionContractSnapshot:
        self._enter("get_specific_option_snapshot")
        if contract_id not in self.contracts:
            raise ExternalAPIError(self.name, f"Unknown contract {contract_id}")
        return self.contracts[contract_id]

    async def get_option_snapshot(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: OptionType,
    ) -> OptionContractSnapshot:
        self._enter("get_option_snapshot")
        key = (strike, OptionType(option_type))
        if key not in self.snapshots:
            raise ExternalAPIError(self.name, f"No contract {symbol} {strike} {option_type}")
        return self.snapshots[key]

    async def get_option_chain_snapshot(
        self,
        symbol: str,
        expiration: Optional[str] = None,
        strike_min: Optional[float] = None,
        strike_max: Optional[float] = None,
    ) -> OptionChain:
        self._enter("get_option_chain_snapshot")
        if expiration is not None:
            return {expiration: self.chain[expiration]} if expiration in self.chain else {}
        return dict(self.chain)


@pytest.fixture
def expiration() -> str:
    return (get_market_today() + timedelta(days=30)).isoformat()


@pytest.fixture
def provider() -> FakeMarketDataProvider:
    fake = FakeMarketDataProvider()
    for strike, option_type in (
        (110.0, OptionType.CALL),
        (115.0, OptionType.CALL),
        (90.0, OptionType.PUT),
        (85.0, OptionType.PUT),
    ):
        fake.snapshots[(strike, option_type)] = make_option_snapshot(strike, option_type)
    return fake


@pytest.fixture
def max_pain_chain() -> OptionChain:
    return {
        "2026-02-20": ExpirationChain(
            calls=[
                make_chain_option(95, 1000, volume=400, last=6.0),
                make_chain_option(100, 2000, volume=800, last=2.5),
                make_chain_option(105, 1500, volume=300, last=0.8),
            ],
            puts=[
                make_chain_option(95, 1500, volume=200, last=0.7),
                make_chain_option(100, 2000, volume=250, last=2.4),
                make_chain_option(105, 1000, volume=50, last=5.5),
            ],
        )
    }


@pytest.fixture
def gamma_chain() -> OptionChain:
    return {
        "2026-02-20": ExpirationChain(
            calls=[
                make_chain_option(100, 5000, gamma=0.02),
                make_chain_option(105, 3000, gamma=0.015),
            ],
            puts=[
                make_chain_option(95, 2000, gamma=0.01),
            ],
        )
    }
