"""
Market Hours Utility

Handles US Eastern time, equity sessions, and NYSE holidays.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional
import pytz

from tradecheck.core.config import settings

MARKET_TZ = pytz.timezone(settings.market_timezone)

# Session timing (Eastern)
PRE_MARKET_START = "04:00"
MARKET_OPEN = "09:30"
MARKET_CLOSE = "16:00"
AFTER_HOURS_END = "20:00"


class MarketSession(str, Enum):
    PRE_MARKET = "pre_market"
    REGULAR = "open"
    AFTER_HOURS = "after_hours"
    CLOSED = "closed"


# NYSE full-day holidays 2025-2027
NYSE_HOLIDAYS = {
    # 2025
    date(2025, 1, 1),    # New Year's Day
    date(2025, 1, 9),    # National Day of Mourning
    date(2025, 1, 20),   # Martin Luther King Jr. Day
    date(2025, 2, 17),   # Washington's Birthday
    date(2025, 4, 18),   # Good Friday
    date(2025, 5, 26),   # Memorial Day
    date(2025, 6, 19),   # Juneteenth
    date(2025, 7, 4),    # Independence Day
    date(2025, 9, 1),    # Labor Day
    date(2025, 11, 27),  # Thanksgiving
    date(2025, 12, 25),  # Christmas
    # 2026
    date(2026, 1, 1),    # New Year's Day
    date(2026, 1, 19),   # Martin Luther King Jr. Day
    date(2026, 2, 16),   # Washington's Birthday
    date(2026, 4, 3),    # Good Friday
    date(2026, 5, 25),   # Memorial Day
    date(2026, 6, 19),   # Juneteenth
    date(2026, 7, 3),    # Independence Day (observed)
    date(2026, 9, 7),    # Labor Day
    date(2026, 11, 26),  # Thanksgiving
    date(2026, 12, 25),  # Christmas
    # 2027
    date(2027, 1, 1),    # New Year's Day
    date(2027, 1, 18),   # Martin Luther King Jr. Day
    date(2027, 2, 15),   # Washington's Birthday
    date(2027, 3, 26),   # Good Friday
    date(2027, 5, 31),   # Memorial Day
    date(2027, 6, 18),   # Juneteenth (observed)
    date(2027, 7, 5),    # Independence Day (observed)
    date(2027, 9, 6),    # Labor Day
    date(2027, 11, 25),  # Thanksgiving
    date(2027, 12, 24),  # Christmas (observed)
}


def get_market_now() -> datetime:
    """Get current time in the market timezone."""
    return datetime.now(MARKET_TZ)


def get_market_today() -> date:
    """Get the current calendar date in the market timezone."""
    return get_market_now().date()


def is_weekend(dt: date) -> bool:
    """Check if date is a weekend."""
    return dt.weekday() >= 5  # Saturday = 5, Sunday = 6


def is_holiday(dt: date) -> bool:
    """Check if date is an NYSE holiday."""
    return dt in NYSE_HOLIDAYS


def is_trading_day(dt: date) -> bool:
    """Check if date is a trading day."""
    return not is_weekend(dt) and not is_holiday(dt)


def get_market_session(dt: Optional[datetime] = None) -> MarketSession:
    """Get the equity session for a moment (defaults to now)."""
    if dt is None:
        dt = get_market_now()
    elif dt.tzinfo is not None:
        dt = dt.astimezone(MARKET_TZ)

    if not is_trading_day(dt.date()):
        return MarketSession.CLOSED

    time_str = dt.strftime("%H:%M")

    if time_str < PRE_MARKET_START:
        return MarketSession.CLOSED
    elif time_str < MARKET_OPEN:
        return MarketSession.PRE_MARKET
    elif time_str < MARKET_CLOSE:
        return MarketSession.REGULAR
    elif time_str < AFTER_HOURS_END:
        return MarketSession.AFTER_HOURS
    else:
        return MarketSession.CLOSED


def is_market_open(dt: Optional[datetime] = None) -> bool:
    """Check if the regular session is open."""
    return get_market_session(dt) == MarketSession.REGULAR
