"""
Indicator and Statistics Math

RESPONSIBILITIES:
    - Moving averages and RSI for providers that ship no indicator endpoint
    - ATR and realized volatility for the probability engine
    - Session VWAP and intraday range for the market context
    - Normal distribution and Black-Scholes helpers

PURE PYTHON - Uses NumPy for calculations.
All math is deterministic and reproducible.
"""
