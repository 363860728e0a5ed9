"""
Application Configuration

All settings loaded from environment variables (prefix TRADECHECK_).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRADECHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "tradecheck"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Market reference symbols
    market_proxy_symbol: str = "SPY"
    vix_symbol: str = "^VIX"
    market_timezone: str = "America/New_York"

    # Intraday bars used for VWAP and range
    intraday_bar_multiplier: int = 5
    intraday_bar_timespan: str = "minute"

    # Daily history used for ATR and realized volatility
    history_lookback_days: int = 30

    # Market strength volume gate (shares traded by the proxy)
    high_volume_threshold: float = 100_000_000

    # Black-Scholes inputs
    risk_free_rate: float = 0.045

    # Option chain fetch (nearest expirations when none is requested)
    chain_max_expirations: int = 4


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
