"""
Market Data Layer

CONTRACT:
    Input:  symbol (+ bar interval / contract / chain filters)
    Output: Quote, Bar, IndicatorSeries, OptionContractSnapshot, OptionChain

RESPONSIBILITIES:
    - Define the provider contract the analytics depend on
    - Normalize vendor field aliases into canonical records
    - Ship a Yahoo Finance provider

NO BUSINESS LOGIC. Providers fetch and normalize; they never score.
"""

from tradecheck.services.market_data.interface import MarketDataProvider
from tradecheck.services.market_data.normalize import coerce_option_chain, normalize_option_market
from tradecheck.services.market_data.yahoo_provider import (
    YahooMarketDataProvider,
    get_market_data_provider,
)

__all__ = [
    "MarketDataProvider",
    "YahooMarketDataProvider",
    "coerce_option_chain",
    "get_market_data_provider",
    "normalize_option_market",
]
