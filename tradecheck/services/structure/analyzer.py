"""
Market Structure Analysis

Positioning metrics from an option chain snapshot: put/call ratios,
order flow, dealer gamma exposure, max pain and open-interest walls.

PURE PYTHON - Deterministic functions of the chain. No I/O.
"""

from typing import Iterable, Optional, Sequence

from tradecheck.schemas.market import ChainOption, ExpirationChain, OptionChain, OptionType
from tradecheck.schemas.structure import (
    BlockTrade,
    ExpectedRange,
    FlowAnalysis,
    FlowTrade,
    GammaExposure,
    GammaLevel,
    GammaRegime,
    MarketStructureSnapshot,
    MaxPain,
    OIWall,
    OIWalls,
    PainPoint,
    PutCallRatios,
    RatioMetric,
    TradeSide,
)

CONTRACT_MULTIPLIER = 100
BLOCK_TRADE_THRESHOLD = 100  # contracts
MAX_BLOCK_TRADES = 10
MAX_WALLS = 5

# Put/call ratio bands shared by every metric
PC_BULLISH_BELOW = 0.7
PC_BEARISH_ABOVE = 1.3


def _expirations(chain: OptionChain, expiration: Optional[str] = None) -> list[ExpirationChain]:
    if expiration is not None:
        return [chain[expiration]] if expiration in chain else []
    return list(chain.values())


def _open_interest(option: ChainOption) -> float:
    return option.price.open_interest or 0.0


# =============================================================================
# PUT/CALL RATIOS
# =============================================================================


PC_LABELS = {
    "volume": (
        "Bullish sentiment - call volume dominates",
        "Neutral sentiment",
        "Bearish sentiment - put volume dominates",
    ),
    "open_interest": (
        "Bullish positioning - high call open interest",
        "Balanced positioning",
        "Bearish positioning - high put open interest",
    ),
    "premium": (
        "Premium flowing into calls - aggressive positioning",
        "Balanced premium flow",
        "Premium flowing into puts - defensive positioning",
    ),
}


def interpret_pc_ratio(ratio: Optional[float], metric: str) -> str:
    if ratio is None:
        return "No call activity - ratio undefined"

    bullish, neutral, bearish = PC_LABELS[metric]
    if ratio < PC_BULLISH_BELOW:
        return bullish
    if ratio > PC_BEARISH_ABOVE:
        return bearish
    return neutral


def _ratio_metric(call_total: float, put_total: float, metric: str) -> RatioMetric:
    ratio = round(put_total / call_total, 3) if call_total > 0 else None
    return RatioMetric(
        ratio=ratio,
        call_total=round(call_total, 2),
        put_total=round(put_total, 2),
        interpretation=interpret_pc_ratio(ratio, metric),
    )


def analyze_put_call_ratios(chain: OptionChain, expiration: Optional[str] = None) -> PutCallRatios:
    """Volume, open interest and premium put/call ratios across the chain."""
    call_volume = put_volume = 0.0
    call_oi = put_oi = 0.0
    call_premium = put_premium = 0.0

    for sides in _expirations(chain, expiration):
        for call in sides.calls:
            volume = call.price.volume or 0.0
            call_volume += volume
            call_oi += _open_interest(call)
            call_premium += (call.price.last or 0.0) * volume
        for put in sides.puts:
            volume = put.price.volume or 0.0
            put_volume += volume
            put_oi += _open_interest(put)
            put_premium += (put.price.last or 0.0) * volume

    return PutCallRatios(
        volume=_ratio_metric(call_volume, put_volume, "volume"),
        open_interest=_ratio_metric(call_oi, put_oi, "open_interest"),
        premium=_ratio_metric(call_premium, put_premium, "premium"),
    )


# =============================================================================
# FLOW
# =============================================================================


def _is_bought(trade: FlowTrade) -> bool:
    if trade.side is not None:
        return trade.side == TradeSide.BUY
    return trade.bid is not None and trade.price > trade.bid


def analyze_option_flow(trades: Optional[Sequence[FlowTrade]]) -> FlowAnalysis:
    """Bullish vs bearish notional from recent prints."""
    if not trades:
        return FlowAnalysis(net_flow="N/A", interpretation="Insufficient trade data")

    bullish = bearish = 0.0
    blocks: list[BlockTrade] = []

    for trade in trades:
        notional = trade.price * trade.size * CONTRACT_MULTIPLIER
        bought = _is_bought(trade)

        # Bought calls and sold puts are bullish
        if (trade.type == OptionType.CALL) == bought:
            bullish += notional
        else:
            bearish += notional

        if trade.size >= BLOCK_TRADE_THRESHOLD:
            blocks.append(
                BlockTrade(
                    type=trade.type,
                    strike=trade.strike,
                    size=trade.size,
                    price=trade.price,
                    dollar_value=notional,
                    time=trade.timestamp,
                )
            )

    net = bullish - bearish
    total = bullish + bearish
    flow_ratio = net / total if total > 0 else 0.0

    if flow_ratio > 0.2:
        interpretation = "Strong bullish flow - institutional buying detected"
    elif flow_ratio > 0:
        interpretation = "Moderate bullish flow"
    elif flow_ratio > -0.2:
        interpretation = "Moderate bearish flow"
    else:
        interpretation = "Strong bearish flow - institutional hedging or bearish bets"

    blocks.sort(key=lambda block: block.dollar_value, reverse=True)

    return FlowAnalysis(
        net_flow=round(net, 2),
        bullish_flow=round(bullish, 2),
        bearish_flow=round(bearish, 2),
        flow_ratio=round(flow_ratio, 3),
        large_block_trades=blocks[:MAX_BLOCK_TRADES],
        interpretation=interpretation,
    )


# =============================================================================
# GAMMA EXPOSURE
# =============================================================================


def analyze_gamma_exposure(chain: OptionChain, spot: float) -> GammaExposure:
    """
    Dealer gamma exposure by strike.

    Calls contribute positively, puts negatively. A positive total is
    labelled "Negative Gamma": hedging amplifies moves.
    """
    scale = spot * spot * 0.01
    net_by_strike: dict[float, float] = {}
    call_gex = put_gex = 0.0

    for sides in chain.values():
        for call in sides.calls:
            contribution = (call.greeks.gamma or 0.0) * _open_interest(call) * scale
            net_by_strike[call.strike] = net_by_strike.get(call.strike, 0.0) + contribution
            call_gex += contribution
        for put in sides.puts:
            contribution = -(put.greeks.gamma or 0.0) * _open_interest(put) * scale
            net_by_strike[put.strike] = net_by_strike.get(put.strike, 0.0) + contribution
            put_gex += contribution

    total = call_gex + put_gex
    strikes = sorted(net_by_strike)

    max_gamma_strike = max(strikes, key=lambda s: abs(net_by_strike[s])) if strikes else None
    zero_gamma_strike = min(strikes, key=lambda s: abs(net_by_strike[s])) if strikes else None

    if total > 0:
        regime = GammaRegime.NEGATIVE
        interpretation = "Dealers are short gamma - expect higher volatility and trending moves"
    else:
        regime = GammaRegime.POSITIVE
        interpretation = "Dealers are long gamma - expect mean reversion and volatility dampening"

    if max_gamma_strike is not None:
        interpretation += f". Key gamma level at {max_gamma_strike:g} likely to act as magnet"

    return GammaExposure(
        total_gex=round(total, 2),
        call_gex=round(call_gex, 2),
        put_gex=round(abs(put_gex), 2),
        regime=regime,
        max_gamma_strike=max_gamma_strike,
        zero_gamma_strike=zero_gamma_strike,
        profile=[GammaLevel(strike=s, net_gamma=round(net_by_strike[s], 2)) for s in strikes],
        interpretation=interpretation,
    )


# =============================================================================
# MAX PAIN
# =============================================================================


def writer_payout(chain: OptionChain, settle: float) -> float:
    """Total intrinsic value paid by option writers if the underlying settles here."""
    payout = 0.0
    for sides in chain.values():
        for call in sides.calls:
            payout += max(0.0, settle - call.strike) * _open_interest(call)
        for put in sides.puts:
            payout += max(0.0, put.strike - settle) * _open_interest(put)
    return payout


def calculate_max_pain(chain: OptionChain, spot: float) -> MaxPain:
    """Strike minimizing writer payout; ties go to the lowest strike."""
    strikes = sorted({o.strike for sides in chain.values() for o in (*sides.calls, *sides.puts)})
    if not strikes:
        return MaxPain(current_spot=spot, interpretation="No strikes in chain - max pain undefined")

    pains = {strike: writer_payout(chain, strike) for strike in strikes}
    max_pain_strike = min(strikes, key=lambda s: pains[s])

    percent_from_spot = (max_pain_strike - spot) / spot * 100 if spot > 0 else 0.0

    if abs(percent_from_spot) < 1:
        interpretation = "Max pain is very close to current price - neutral positioning"
    elif percent_from_spot > 3:
        interpretation = "Max pain significantly above spot - potential upward pressure"
    elif percent_from_spot < -3:
        interpretation = "Max pain significantly below spot - potential downward pressure"
    else:
        interpretation = "Max pain moderately displaced from spot - some directional pressure"

    return MaxPain(
        strike=max_pain_strike,
        current_spot=spot,
        percent_from_spot=round(percent_from_spot, 2),
        total_pain_at_max=pains[max_pain_strike],
        pain_distribution=[
            PainPoint(
                strike=strike,
                pain=pains[strike],
                percent_from_max=round((strike - max_pain_strike) / max_pain_strike * 100, 2),
            )
            for strike in strikes
        ],
        interpretation=interpretation,
    )


# =============================================================================
# OPEN INTEREST WALLS
# =============================================================================


def _oi_by_strike(options: Iterable[ChainOption]) -> dict[float, float]:
    totals: dict[float, float] = {}
    for option in options:
        totals[option.strike] = totals.get(option.strike, 0.0) + _open_interest(option)
    return totals


def _top_walls(oi_by_strike: dict[float, float]) -> list[OIWall]:
    total = sum(oi_by_strike.values())
    ranked = sorted(oi_by_strike.items(), key=lambda item: item[1], reverse=True)[:MAX_WALLS]
    return [
        OIWall(
            strike=strike,
            open_interest=oi,
            percent_of_total=round(oi / total * 100, 2) if total > 0 else 0.0,
        )
        for strike, oi in ranked
    ]


def analyze_oi_distribution(chain: OptionChain, spot: float) -> OIWalls:
    """Call walls above spot are resistance, put walls below spot are support."""
    call_walls = _top_walls(_oi_by_strike(o for sides in chain.values() for o in sides.calls))
    put_walls = _top_walls(_oi_by_strike(o for sides in chain.values() for o in sides.puts))

    resistance = min((w for w in call_walls if w.strike > spot), key=lambda w: w.strike, default=None)
    support = max((w for w in put_walls if w.strike < spot), key=lambda w: w.strike, default=None)

    parts = []
    if resistance is not None and resistance.percent_of_total > 10:
        parts.append(f"Strong resistance at {resistance.strike:g} ({resistance.percent_of_total:.1f}% of call OI).")
    if support is not None and support.percent_of_total > 10:
        parts.append(f"Strong support at {support.strike:g} ({support.percent_of_total:.1f}% of put OI).")

    width = 0.0
    if resistance is not None and support is not None:
        width = resistance.strike - support.strike
        parts.append(f"Expected range: {support.strike:g}-{resistance.strike:g}")

    return OIWalls(
        call_walls=call_walls,
        put_walls=put_walls,
        nearest_support=support.strike if support else None,
        nearest_resistance=resistance.strike if resistance else None,
        expected_range=ExpectedRange(
            low=support.strike if support else None,
            high=resistance.strike if resistance else None,
            width=width,
        ),
        interpretation=" ".join(parts) or "No significant OI concentrations found",
    )


# =============================================================================
# COMPOSITE
# =============================================================================


def analyze_market_structure(
    chain: OptionChain,
    spot: float,
    trades: Optional[Sequence[FlowTrade]] = None,
) -> MarketStructureSnapshot:
    """Every structure metric for one chain snapshot."""
    return MarketStructureSnapshot(
        spot_price=spot,
        put_call_ratio=analyze_put_call_ratios(chain),
        gamma_exposure=analyze_gamma_exposure(chain, spot),
        max_pain=calculate_max_pain(chain, spot),
        oi_walls=analyze_oi_distribution(chain, spot),
        flow=analyze_option_flow(trades) if trades is not None else None,
    )
