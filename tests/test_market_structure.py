from __future__ import annotations

import pytest

from tests.conftest import FakeMarketDataProvider, make_chain_option
from tradecheck.schemas.market import ExpirationChain, OptionType
from tradecheck.schemas.structure import FlowTrade, GammaRegime, TradeSide
from tradecheck.services.base import ExternalAPIError
from tradecheck.services.structure.analyzer import (
    analyze_gamma_exposure,
    analyze_market_structure,
    analyze_oi_distribution,
    analyze_option_flow,
    analyze_put_call_ratios,
    calculate_max_pain,
    writer_payout,
)
from tradecheck.services.structure.service import MarketStructureService


def test_max_pain_matches_brute_force(max_pain_chain) -> None:
    result = calculate_max_pain(max_pain_chain, spot=102)

    assert result.strike == 100
    assert result.total_pain_at_max == 10_000
    assert [p.pain for p in result.pain_distribution] == [20_000, 10_000, 20_000]

    # Minimum over every listed strike
    for point in result.pain_distribution:
        assert writer_payout(max_pain_chain, point.strike) >= result.total_pain_at_max

    assert result.percent_from_spot == pytest.approx(-1.96)
    assert result.interpretation == "Max pain moderately displaced from spot - some directional pressure"


def test_max_pain_ties_go_to_lowest_strike() -> None:
    chain = {
        "2026-02-20": ExpirationChain(
            calls=[make_chain_option(100, 0), make_chain_option(105, 0)],
            puts=[],
        )
    }

    assert calculate_max_pain(chain, spot=100).strike == 100


def test_max_pain_empty_chain() -> None:
    result = calculate_max_pain({}, spot=100)

    assert result.strike is None
    assert result.pain_distribution == []


def test_oi_walls_pick_nearest_support_and_resistance(max_pain_chain) -> None:
    walls = analyze_oi_distribution(max_pain_chain, spot=100)

    assert walls.nearest_resistance == 105
    assert walls.nearest_support == 95
    assert walls.expected_range.width == 10
    assert walls.call_walls[0].strike == 100
    assert walls.call_walls[0].percent_of_total == pytest.approx(44.44)
    assert "Expected range: 95-105" in walls.interpretation


def test_oi_walls_highest_call_wall_above_spot() -> None:
    chain = {
        "2026-02-20": ExpirationChain(
            calls=[make_chain_option(100, 5000), make_chain_option(105, 20000), make_chain_option(110, 3000)],
            puts=[make_chain_option(90, 3000), make_chain_option(95, 15000), make_chain_option(100, 5000)],
        )
    }

    walls = analyze_oi_distribution(chain, spot=100)

    assert [w.strike for w in walls.call_walls] == [105, 100, 110]
    assert [w.strike for w in walls.put_walls] == [95, 100, 90]
    assert walls.nearest_resistance == 105
    assert walls.nearest_support == 95
    assert (walls.expected_range.low, walls.expected_range.high, walls.expected_range.width) == (95, 105, 10)
    assert walls.call_walls[0].percent_of_total == pytest.approx(71.43)


def test_oi_walls_without_concentrations() -> None:
    walls = analyze_oi_distribution({}, spot=100)

    assert walls.nearest_support is None
    assert walls.nearest_resistance is None
    assert walls.expected_range.width == 0
    assert walls.interpretation == "No significant OI concentrations found"


def test_gamma_exposure_sample(gamma_chain) -> None:
    gex = analyze_gamma_exposure(gamma_chain, spot=100)

    assert gex.total_gex == pytest.approx(12_500)
    assert gex.call_gex == pytest.approx(14_500)
    assert gex.put_gex == pytest.approx(2_000)
    assert gex.regime == GammaRegime.NEGATIVE
    assert gex.max_gamma_strike == 100
    assert gex.zero_gamma_strike == 95
    assert [level.strike for level in gex.profile] == [95, 100, 105]
    assert "Key gamma level at 100" in gex.interpretation


def test_gamma_exposure_put_heavy_is_positive_regime() -> None:
    chain = {"2026-02-20": ExpirationChain(calls=[], puts=[make_chain_option(95, 4000, gamma=0.02)])}

    gex = analyze_gamma_exposure(chain, spot=100)

    assert gex.total_gex < 0
    assert gex.regime == GammaRegime.POSITIVE


def test_put_call_ratios(max_pain_chain) -> None:
    ratios = analyze_put_call_ratios(max_pain_chain)

    assert ratios.volume.call_total == 1500
    assert ratios.volume.put_total == 500
    assert ratios.volume.ratio == pytest.approx(0.333)
    assert ratios.volume.interpretation == "Bullish sentiment - call volume dominates"
    assert ratios.open_interest.ratio == pytest.approx(1.0)
    assert ratios.open_interest.interpretation == "Balanced positioning"


def test_put_call_ratio_undefined_without_calls() -> None:
    chain = {"2026-02-20": ExpirationChain(calls=[], puts=[make_chain_option(95, 100, volume=10, last=1.0)])}

    ratios = analyze_put_call_ratios(chain)

    assert ratios.volume.ratio is None
    assert ratios.volume.interpretation == "No call activity - ratio undefined"


def test_put_call_ratio_restricted_to_expiration(max_pain_chain) -> None:
    ratios = analyze_put_call_ratios(max_pain_chain, expiration="2030-01-01")

    assert ratios.volume.call_total == 0
    assert ratios.volume.ratio is None


def test_flow_without_trades() -> None:
    for trades in (None, []):
        flow = analyze_option_flow(trades)
        assert flow.net_flow == "N/A"
        assert flow.interpretation == "Insufficient trade data"


def test_flow_classifies_and_ranks_blocks() -> None:
    trades = [
        FlowTrade(type=OptionType.CALL, side=TradeSide.BUY, price=2.0, size=150, strike=105),
        FlowTrade(type=OptionType.PUT, side=TradeSide.BUY, price=1.0, size=50, strike=95),
        FlowTrade(type=OptionType.PUT, price=1.5, bid=1.25, size=300, strike=90),
    ]

    flow = analyze_option_flow(trades)

    # Bought call 30k bullish, bought puts 5k + 45k bearish
    assert flow.bullish_flow == 30_000
    assert flow.bearish_flow == 50_000
    assert flow.net_flow == -20_000
    assert flow.interpretation == "Strong bearish flow - institutional hedging or bearish bets"
    assert [b.dollar_value for b in flow.large_block_trades] == [45_000, 30_000]


def test_sold_puts_count_as_bullish() -> None:
    flow = analyze_option_flow([FlowTrade(type=OptionType.PUT, side=TradeSide.SELL, price=1.0, size=10)])

    assert flow.bullish_flow == 1_000
    assert flow.flow_ratio == 1.0
    assert flow.interpretation == "Strong bullish flow - institutional buying detected"


def test_market_structure_is_idempotent(max_pain_chain) -> None:
    first = analyze_market_structure(max_pain_chain, spot=100)
    second = analyze_market_structure(max_pain_chain, spot=100)

    assert first == second
    assert first.flow is None


@pytest.mark.asyncio
async def test_structure_service_uses_provider_chain(max_pain_chain) -> None:
    provider = FakeMarketDataProvider()
    provider.chain = max_pain_chain

    snapshot = await MarketStructureService(provider).analyze("AAPL")

    assert snapshot.spot_price == 100.0
    assert snapshot.max_pain.strike == 100
    assert snapshot.oi_walls.nearest_resistance == 105


@pytest.mark.asyncio
async def test_structure_service_requires_spot(max_pain_chain) -> None:
    provider = FakeMarketDataProvider()
    provider.chain = max_pain_chain
    provider.quotes["AAPL"] = provider.quotes["AAPL"].model_copy(update={"price": 0.0})

    with pytest.raises(ExternalAPIError):
        await MarketStructureService(provider).analyze("AAPL")
