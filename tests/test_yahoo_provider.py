from __future__ import annotations

from types import SimpleNamespace

import pandas as pd
import pytest

from tradecheck.schemas.market import OptionType
from tradecheck.services.base import ExternalAPIError
from tradecheck.services.market_data import yahoo_provider
from tradecheck.services.market_data.yahoo_provider import (
    YahooMarketDataProvider,
    get_yahoo_interval,
    get_yahoo_symbol,
    parse_occ_symbol,
)


def _history(closes: list[float]) -> pd.DataFrame:
    index = pd.date_range("2026-01-05", periods=len(closes), freq="D", tz="America/New_York")
    return pd.DataFrame(
        {
            "Open": closes,
            "High": [c + 1 for c in closes],
            "Low": [c - 1 for c in closes],
            "Close": closes,
            "Volume": [1_000_000.0] * len(closes),
        },
        index=index,
    )


def _option_frame(prefix: str, cp: str) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "contractSymbol": [f"{prefix}260220{cp}00095000", f"{prefix}260220{cp}00100000"],
            "strike": [95.0, 100.0],
            "lastPrice": [6.1, 2.4],
            "bid": [6.0, 2.3],
            "ask": [6.2, float("nan")],
            "volume": [120.0, float("nan")],
            "openInterest": [900.0, 2100.0],
            "impliedVolatility": [0.25, 0.22],
        }
    )


class _FakeTicker:
    histories: dict[str, pd.DataFrame] = {}

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self.options = ("2026-02-20", "2026-03-20")

    def history(self, **kwargs) -> pd.DataFrame:
        return self.histories.get(self.symbol, pd.DataFrame())

    def option_chain(self, expiration: str) -> SimpleNamespace:
        return SimpleNamespace(calls=_option_frame(self.symbol, "C"), puts=_option_frame(self.symbol, "P"))


@pytest.fixture
def fake_yfinance(monkeypatch: pytest.MonkeyPatch) -> type[_FakeTicker]:
    _FakeTicker.histories = {"AAPL": _history([98.0, 99.0, 100.0]), "^VIX": _history([16.0, 15.0])}
    monkeypatch.setattr(yahoo_provider.yf, "Ticker", _FakeTicker)
    return _FakeTicker


def test_parse_occ_symbol() -> None:
    assert parse_occ_symbol("AAPL260220C00150000") == ("AAPL", "2026-02-20", OptionType.CALL, 150.0)
    assert parse_occ_symbol("O:SPY260320P00512500") == ("SPY", "2026-03-20", OptionType.PUT, 512.5)

    with pytest.raises(ValueError):
        parse_occ_symbol("AAPL 150 call")


def test_symbol_and_interval_mapping() -> None:
    assert get_yahoo_symbol("vix") == "^VIX"
    assert get_yahoo_symbol(" aapl ") == "AAPL"
    assert get_yahoo_interval(5, "minute") == "5m"
    assert get_yahoo_interval(1, "day") == "1d"

    with pytest.raises(ValueError):
        get_yahoo_interval(1, "fortnight")


@pytest.mark.asyncio
async def test_quote_from_recent_history(fake_yfinance) -> None:
    quote = await YahooMarketDataProvider().get_quote("AAPL")

    assert quote.price == 100.0
    assert quote.change == pytest.approx(1.0)
    assert quote.change_percent == pytest.approx(1.0101, abs=1e-3)
    assert quote.volume == 1_000_000


@pytest.mark.asyncio
async def test_index_alias_is_resolved(fake_yfinance) -> None:
    quote = await YahooMarketDataProvider().get_quote("VIX")

    assert quote.price == 15.0


@pytest.mark.asyncio
async def test_empty_history_raises_external_error(fake_yfinance) -> None:
    with pytest.raises(ExternalAPIError):
        await YahooMarketDataProvider().get_quote("MISSING")


@pytest.mark.asyncio
async def test_indicators_are_most_recent_first(fake_yfinance) -> None:
    sma = await YahooMarketDataProvider().get_sma("AAPL", 2)

    assert [v.value for v in sma.values] == [99.5, 98.5]


@pytest.mark.asyncio
async def test_option_snapshot_by_contract(fake_yfinance) -> None:
    snapshot = await YahooMarketDataProvider().get_specific_option_snapshot("AAPL", "AAPL260220C00095000")

    assert snapshot.details.strike_price == 95.0
    assert snapshot.details.contract_type == OptionType.CALL
    assert snapshot.last_quote.mid_price == pytest.approx(6.1)
    assert snapshot.implied_volatility == 0.25
    assert snapshot.underlying_price == 100.0
    assert snapshot.greeks.gamma is not None and snapshot.greeks.gamma > 0


@pytest.mark.asyncio
async def test_option_snapshot_nan_cells_become_none(fake_yfinance) -> None:
    snapshot = await YahooMarketDataProvider().get_option_snapshot("AAPL", 100.0, "2026-02-20", OptionType.PUT)

    assert snapshot.last_quote.ask_price is None
    assert snapshot.last_quote.mid_price is None
    assert snapshot.day.volume is None
    assert snapshot.open_interest == 2100.0


@pytest.mark.asyncio
async def test_bad_contract_id_raises(fake_yfinance) -> None:
    with pytest.raises(ExternalAPIError):
        await YahooMarketDataProvider().get_specific_option_snapshot("AAPL", "not-a-contract")


@pytest.mark.asyncio
async def test_chain_filters_strikes(fake_yfinance) -> None:
    chain = await YahooMarketDataProvider().get_option_chain_snapshot("AAPL", strike_min=97)

    assert list(chain) == ["2026-02-20", "2026-03-20"]
    calls = chain["2026-02-20"].calls
    assert [c.strike for c in calls] == [100.0]
    assert calls[0].price.open_interest == 2100.0
    assert calls[0].price.volume is None
