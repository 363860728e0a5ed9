"""
Indicator and Statistics Calculations

Pure Python/NumPy implementations used by the pipeline.
All math is deterministic: same inputs, same outputs.
"""

import math
from typing import Optional, Sequence

import numpy as np

from tradecheck.schemas.market import Bar

TRADING_DAYS_PER_YEAR = 252


def _bar_arrays(bars: Sequence[Bar]) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Convert bars to (opens, highs, lows, closes, volumes) arrays."""
    opens = np.array([b.open for b in bars], dtype=float)
    highs = np.array([b.high for b in bars], dtype=float)
    lows = np.array([b.low for b in bars], dtype=float)
    closes = np.array([b.close for b in bars], dtype=float)
    volumes = np.array([b.volume for b in bars], dtype=float)
    return opens, highs, lows, closes, volumes


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(data: np.ndarray, period: int) -> np.ndarray:
    """Simple Moving Average."""
    if len(data) < period:
        return np.full(len(data), np.nan)

    result = np.full(len(data), np.nan)
    for i in range(period - 1, len(data)):
        result[i] = np.mean(data[i - period + 1 : i + 1])
    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """Relative Strength Index (Wilder smoothing)."""
    if len(closes) < period + 1:
        return np.full(len(closes), np.nan)

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0)
    losses = np.where(deltas < 0, -deltas, 0)

    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])

    result = np.full(len(closes), np.nan)

    if avg_loss == 0:
        result[period] = 100
    else:
        rs = avg_gain / avg_loss
        result[period] = 100 - (100 / (1 + rs))

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

        if avg_loss == 0:
            result[i + 1] = 100
        else:
            rs = avg_gain / avg_loss
            result[i + 1] = 100 - (100 / (1 + rs))

    return result


# =============================================================================
# VOLATILITY
# =============================================================================


def true_ranges(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """True range of every bar after the first."""
    if len(closes) < 2:
        return np.array([], dtype=float)

    prev_closes = closes[:-1]
    return np.maximum.reduce([
        highs[1:] - lows[1:],
        np.abs(highs[1:] - prev_closes),
        np.abs(lows[1:] - prev_closes),
    ])


def average_true_range(bars: Sequence[Bar], period: int = 14) -> float:
    """
    Average True Range over the last `period` bars.

    Simple mean of the most recent true ranges; 0 when fewer than
    period + 1 bars are available.
    """
    if len(bars) < period + 1:
        return 0.0

    _, highs, lows, closes, _ = _bar_arrays(bars)
    tr = true_ranges(highs, lows, closes)
    return float(np.mean(tr[-period:]))


def realized_volatility(bars: Sequence[Bar]) -> float:
    """Annualized close-to-close volatility (sample stdev of log returns)."""
    if len(bars) < 3:
        return 0.0

    closes = np.array([b.close for b in bars], dtype=float)
    if np.any(closes <= 0):
        return 0.0

    log_returns = np.diff(np.log(closes))
    return float(np.std(log_returns, ddof=1) * math.sqrt(TRADING_DAYS_PER_YEAR))


# =============================================================================
# VOLUME / SESSION
# =============================================================================


def session_vwap(bars: Sequence[Bar]) -> float:
    """Volume Weighted Average Price of typical price over the session."""
    if not bars:
        return 0.0

    _, highs, lows, closes, volumes = _bar_arrays(bars)
    total_volume = np.sum(volumes)
    if total_volume <= 0:
        return 0.0

    typical_price = (highs + lows + closes) / 3
    return float(np.sum(typical_price * volumes) / total_volume)


def session_range(bars: Sequence[Bar]) -> tuple[float, float, float, float, float]:
    """
    Intraday range statistics.

    Returns: (high, low, range, range_pct, open)
    """
    if not bars:
        return 0.0, 0.0, 0.0, 0.0, 0.0

    high = max(b.high for b in bars)
    low = min(b.low for b in bars)
    session_open = bars[0].open
    range_ = high - low
    range_pct = (range_ / session_open) * 100 if session_open > 0 else 0.0
    return high, low, range_, range_pct, session_open


# =============================================================================
# DISTRIBUTIONS / BLACK-SCHOLES
# =============================================================================


def normal_cdf(x: float) -> float:
    """Standard normal cumulative distribution."""
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


def normal_pdf(x: float) -> float:
    """Standard normal density."""
    return math.exp(-0.5 * x * x) / math.sqrt(2.0 * math.pi)


def black_scholes_d1_d2(
    spot: float,
    strike: float,
    volatility: float,
    years: float,
    rate: float,
) -> tuple[float, float]:
    """Black-Scholes d1 and d2."""
    sigma_sqrt_t = volatility * math.sqrt(years)
    d1 = (math.log(spot / strike) + (rate + volatility ** 2 / 2) * years) / sigma_sqrt_t
    return d1, d1 - sigma_sqrt_t


def black_scholes_gamma(
    spot: float,
    strike: float,
    volatility: float,
    years: float,
    rate: float,
) -> Optional[float]:
    """Option gamma (same for calls and puts); None when inputs are unusable."""
    if spot <= 0 or strike <= 0 or volatility <= 0 or years <= 0:
        return None

    d1, _ = black_scholes_d1_d2(spot, strike, volatility, years, rate)
    return normal_pdf(d1) / (spot * volatility * math.sqrt(years))

