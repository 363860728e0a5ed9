"""
Provider Field Normalization

Vendors and chain rows name the same quote fields differently.
Everything is mapped onto canonical records here, once, before any
computation runs. Absent fields stay None.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel

from tradecheck.schemas.liquidity import OptionMarket
from tradecheck.schemas.market import ExpirationChain, OptionChain

# canonical field -> accepted aliases, first present wins
OPTION_MARKET_ALIASES: dict[str, tuple[str, ...]] = {
    "bid": ("bid", "bid_price"),
    "ask": ("ask", "ask_price"),
    "volume": ("volume", "day_volume"),
    "open_interest": ("open_interest", "oi"),
}


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _pick(raw: Mapping[str, Any], aliases: tuple[str, ...]) -> Optional[float]:
    for key in aliases:
        if raw.get(key) is not None:
            return _to_float(raw[key])
    return None


def normalize_option_market(raw: Union[Mapping[str, Any], BaseModel, OptionMarket]) -> OptionMarket:
    """
    Build an OptionMarket from any supported option shape.

    Accepts flat records (bid/bid_price, ask/ask_price, volume/day_volume,
    open_interest/oi) and chain rows carrying a nested `price` mapping.
    Flat fields take precedence over the nested ones.
    """
    if isinstance(raw, OptionMarket):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()

    nested = raw.get("price")
    nested = nested if isinstance(nested, Mapping) else {}

    values: dict[str, Optional[float]] = {}
    for field, aliases in OPTION_MARKET_ALIASES.items():
        value = _pick(raw, aliases)
        if value is None:
            value = _pick(nested, aliases)
        values[field] = value

    return OptionMarket(**values)


def coerce_option_chain(raw: Mapping[str, Any]) -> OptionChain:
    """Validate a raw {expiration: {calls, puts}} mapping into chain records."""
    chain: OptionChain = {}
    for expiration, sides in raw.items():
        if isinstance(sides, ExpirationChain):
            chain[str(expiration)] = sides
        else:
            chain[str(expiration)] = ExpirationChain.model_validate(sides)
    return chain
