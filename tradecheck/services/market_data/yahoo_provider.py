"""
Yahoo Finance Market Data Provider

Fetches REAL market data from Yahoo Finance.
US equities and ETFs use their plain tickers; indices use the ^ prefix.

Yahoo ships no Greeks and no indicator endpoints, so RSI/SMA are computed
locally from daily closes and chain gamma is derived with Black-Scholes
from each row's implied volatility. yfinance is blocking; every call runs
in a worker thread.
"""

import asyncio
import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

import numpy as np
import yfinance as yf

from tradecheck.core.config import settings
from tradecheck.core.market_hours import MARKET_TZ, get_market_today
from tradecheck.schemas.market import (
    Bar,
    ChainOption,
    ChainPrice,
    ExpirationChain,
    Greeks,
    IndicatorSeries,
    IndicatorValue,
    OptionChain,
    OptionContractDetails,
    OptionContractSnapshot,
    OptionDay,
    OptionLastQuote,
    OptionLastTrade,
    OptionType,
    Quote,
)
from tradecheck.services.base import ExternalAPIError
from tradecheck.services.indicators.calculations import black_scholes_gamma, rsi, sma
from tradecheck.services.market_data.interface import MarketDataProvider

logger = logging.getLogger(__name__)

PROVIDER_NAME = "YahooMarketDataProvider"

# Interval suffix per timespan for yfinance
TIMESPAN_MAP = {
    "minute": "m",
    "hour": "h",
    "day": "d",
    "week": "wk",
    "month": "mo",
}

# Index aliases callers commonly use
INDEX_MAP = {
    "VIX": "^VIX",
    "SPX": "^GSPC",
    "NDX": "^NDX",
    "RUT": "^RUT",
    "DJI": "^DJI",
}

# OCC option symbol: ROOT + YYMMDD + C/P + strike * 1000 (8 digits)
OCC_PATTERN = re.compile(r"^(?:O:)?([A-Z.]{1,6})(\d{6})([CP])(\d{8})$")


def get_yahoo_symbol(symbol: str) -> str:
    """Convert a symbol to Yahoo Finance format."""
    symbol = symbol.upper().strip()
    return INDEX_MAP.get(symbol, symbol)


def get_yahoo_interval(multiplier: int, timespan: str) -> str:
    suffix = TIMESPAN_MAP.get(timespan.lower())
    if suffix is None:
        raise ValueError(f"Unsupported timespan: {timespan}")
    return f"{multiplier}{suffix}"


def parse_occ_symbol(contract_id: str) -> tuple[str, str, OptionType, float]:
    """Split an OCC symbol into (root, expiration, type, strike)."""
    match = OCC_PATTERN.match(contract_id.upper().strip())
    if not match:
        raise ValueError(f"Not an OCC option symbol: {contract_id}")

    root, yymmdd, cp, strike_digits = match.groups()
    expiration = datetime.strptime(yymmdd, "%y%m%d").date().isoformat()
    option_type = OptionType.CALL if cp == "C" else OptionType.PUT
    return root, expiration, option_type, int(strike_digits) / 1000


def _clean(value: Any) -> Optional[float]:
    """Yahoo cells may be None or NaN; both mean absent."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _history_to_bars(hist) -> list[Bar]:
    bars = []
    for idx, row in hist.iterrows():
        ts = idx.to_pydatetime()
        if ts.tzinfo is None:
            ts = MARKET_TZ.localize(ts)
        bars.append(
            Bar(
                timestamp=ts,
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=float(row["Volume"]) if _clean(row["Volume"]) is not None else 0.0,
            )
        )
    return bars


def _years_to_expiry(expiration: str) -> float:
    dte = (date.fromisoformat(expiration) - get_market_today()).days
    return max(dte, 1) / 365


class YahooMarketDataProvider(MarketDataProvider):
    """
    MarketDataProvider backed by yfinance.

    Quotes come from recent daily history; option snapshots and chains
    from Ticker.option_chain.
    """

    @property
    def name(self) -> str:
        return PROVIDER_NAME

    # =========================================================================
    # QUOTES & BARS
    # =========================================================================

    async def get_quote(self, symbol: str) -> Quote:
        return await self._run(self._fetch_quote, symbol)

    async def get_intraday_bars(
        self,
        symbol: str,
        multiplier: int,
        timespan: str,
        day: date,
    ) -> list[Bar]:
        interval = get_yahoo_interval(multiplier, timespan)
        return await self._run(
            self._fetch_history, symbol, interval, day, day + timedelta(days=1)
        )

    async def get_historical_bars(
        self,
        symbol: str,
        multiplier: int,
        timespan: str,
        from_date: date,
        to_date: date,
    ) -> list[Bar]:
        interval = get_yahoo_interval(multiplier, timespan)
        return await self._run(
            self._fetch_history, symbol, interval, from_date, to_date + timedelta(days=1)
        )

    # =========================================================================
    # INDICATORS (computed locally)
    # =========================================================================

    async def get_rsi(self, symbol: str, window: int = 14) -> IndicatorSeries:
        closes = await self._run(self._fetch_daily_closes, symbol)
        return self._to_series(rsi(closes, window))

    async def get_sma(self, symbol: str, window: int) -> IndicatorSeries:
        closes = await self._run(self._fetch_daily_closes, symbol)
        return self._to_series(sma(closes, window))

    # =========================================================================
    # OPTIONS
    # =========================================================================

    async def get_specific_option_snapshot(
        self,
        symbol: str,
        contract_id: str,
    ) -> OptionContractSnapshot:
        try:
            _, expiration, option_type, strike = parse_occ_symbol(contract_id)
        except ValueError as e:
            raise ExternalAPIError(PROVIDER_NAME, str(e)) from e
        return await self._run(
            self._fetch_option_snapshot, symbol, strike, expiration, option_type, contract_id
        )

    async def get_option_snapshot(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: OptionType,
    ) -> OptionContractSnapshot:
        return await self._run(
            self._fetch_option_snapshot, symbol, strike, expiration, OptionType(option_type), None
        )

    async def get_option_chain_snapshot(
        self,
        symbol: str,
        expiration: Optional[str] = None,
        strike_min: Optional[float] = None,
        strike_max: Optional[float] = None,
    ) -> OptionChain:
        return await self._run(self._fetch_chain, symbol, expiration, strike_min, strike_max)

    # =========================================================================
    # SYNC FETCHERS (run in worker threads)
    # =========================================================================

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except ExternalAPIError:
            raise
        except Exception as e:
            logger.error(f"Yahoo Finance {func.__name__} failed for {args[0] if args else ''}: {e}")
            raise ExternalAPIError(PROVIDER_NAME, f"{func.__name__} failed: {e}") from e

    def _fetch_quote(self, symbol: str) -> Quote:
        yahoo_symbol = get_yahoo_symbol(symbol)
        logger.info(f"Fetching quote {yahoo_symbol} from Yahoo Finance...")

        hist = yf.Ticker(yahoo_symbol).history(period="5d", interval="1d")
        if hist.empty:
            raise ExternalAPIError(PROVIDER_NAME, f"No data returned for {yahoo_symbol}")

        last = hist.iloc[-1]
        price = float(last["Close"])
        prev_close = float(hist.iloc[-2]["Close"]) if len(hist) > 1 else price
        change = price - prev_close
        change_pct = (change / prev_close * 100) if prev_close > 0 else 0.0

        return Quote(
            symbol=symbol.upper(),
            price=price,
            change=change,
            change_percent=change_pct,
            volume=_clean(last["Volume"]) or 0.0,
        )

    def _fetch_history(self, symbol: str, interval: str, start: date, end: date) -> list[Bar]:
        yahoo_symbol = get_yahoo_symbol(symbol)
        hist = yf.Ticker(yahoo_symbol).history(start=start, end=end, interval=interval)
        if hist.empty:
            logger.warning(f"No {interval} bars for {yahoo_symbol} between {start} and {end}")
            return []
        return _history_to_bars(hist)

    def _fetch_daily_closes(self, symbol: str) -> np.ndarray:
        hist = yf.Ticker(get_yahoo_symbol(symbol)).history(period="1y", interval="1d")
        return hist["Close"].to_numpy(dtype=float) if not hist.empty else np.array([], dtype=float)

    def _fetch_underlying_price(self, ticker) -> Optional[float]:
        hist = ticker.history(period="1d", interval="1d")
        return float(hist.iloc[-1]["Close"]) if not hist.empty else None

    def _fetch_option_snapshot(
        self,
        symbol: str,
        strike: float,
        expiration: str,
        option_type: OptionType,
        contract_id: Optional[str],
    ) -> OptionContractSnapshot:
        ticker = yf.Ticker(get_yahoo_symbol(symbol))
        chain = ticker.option_chain(expiration)
        frame = chain.calls if option_type == OptionType.CALL else chain.puts

        if contract_id is not None and "contractSymbol" in frame:
            rows = frame[frame["contractSymbol"] == contract_id.upper().removeprefix("O:")]
        else:
            rows = frame[np.isclose(frame["strike"].to_numpy(dtype=float), strike)]

        if rows.empty:
            raise ExternalAPIError(
                PROVIDER_NAME,
                f"No {option_type.value} contract for {symbol} {strike} {expiration}",
            )

        row = rows.iloc[0]
        underlying_price = self._fetch_underlying_price(ticker)
        iv = _clean(row.get("impliedVolatility"))
        bid = _clean(row.get("bid"))
        ask = _clean(row.get("ask"))
        mid = (bid + ask) / 2 if bid is not None and ask is not None else None

        gamma = None
        if underlying_price and iv:
            gamma = black_scholes_gamma(
                underlying_price, strike, iv, _years_to_expiry(expiration), settings.risk_free_rate
            )

        return OptionContractSnapshot(
            details=OptionContractDetails(
                ticker=row.get("contractSymbol"),
                contract_type=option_type,
                strike_price=float(row["strike"]),
                expiration_date=expiration,
            ),
            last_quote=OptionLastQuote(bid_price=bid, ask_price=ask, mid_price=mid),
            last_trade=OptionLastTrade(price=_clean(row.get("lastPrice"))),
            implied_volatility=iv,
            greeks=Greeks(gamma=gamma),
            day=OptionDay(volume=_clean(row.get("volume"))),
            open_interest=_clean(row.get("openInterest")),
            underlying_price=underlying_price,
        )

    def _fetch_chain(
        self,
        symbol: str,
        expiration: Optional[str],
        strike_min: Optional[float],
        strike_max: Optional[float],
    ) -> OptionChain:
        ticker = yf.Ticker(get_yahoo_symbol(symbol))
        expirations = [expiration] if expiration else list(ticker.options)[: settings.chain_max_expirations]
        spot = self._fetch_underlying_price(ticker)

        result: OptionChain = {}
        for exp_str in expirations:
            chain = ticker.option_chain(exp_str)
            years = _years_to_expiry(exp_str)
            result[exp_str] = ExpirationChain(
                calls=self._chain_rows(chain.calls, spot, years, strike_min, strike_max),
                puts=self._chain_rows(chain.puts, spot, years, strike_min, strike_max),
            )

        logger.info(f"Fetched {len(result)} expirations for {symbol}")
        return result

    def _chain_rows(
        self,
        frame,
        spot: Optional[float],
        years: float,
        strike_min: Optional[float],
        strike_max: Optional[float],
    ) -> list[ChainOption]:
        rows = []
        for _, row in frame.iterrows():
            strike = float(row["strike"])
            if strike_min is not None and strike < strike_min:
                continue
            if strike_max is not None and strike > strike_max:
                continue

            iv = _clean(row.get("impliedVolatility"))
            gamma = None
            if spot and iv:
                gamma = black_scholes_gamma(spot, strike, iv, years, settings.risk_free_rate)

            rows.append(
                ChainOption(
                    strike=strike,
                    price=ChainPrice(
                        last=_clean(row.get("lastPrice")),
                        volume=_clean(row.get("volume")),
                        open_interest=_clean(row.get("openInterest")),
                        bid=_clean(row.get("bid")),
                        ask=_clean(row.get("ask")),
                    ),
                    greeks=Greeks(gamma=gamma),
                    implied_volatility=iv,
                )
            )
        return rows

    @staticmethod
    def _to_series(values: np.ndarray) -> IndicatorSeries:
        """Most recent first, NaN warm-up dropped."""
        valid = [float(v) for v in values[::-1] if not np.isnan(v)]
        return IndicatorSeries(values=[IndicatorValue(value=v) for v in valid])


# Singleton instance
_provider_instance: Optional[YahooMarketDataProvider] = None


def get_market_data_provider() -> MarketDataProvider:
    """Get or create the default market data provider."""
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = YahooMarketDataProvider()
    return _provider_instance
