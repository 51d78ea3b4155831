from __future__ import annotations
from decimal import Decimal


def floor_to_tick(price: float, tick: float | None) -> float:
    """
    Floor a limit price to the exchange tick.
    Decimal on str() inputs so 0.1-style ticks don't drift.
    """
    if tick is None or tick <= 0:
        return price
    p = Decimal(str(price))
    t = Decimal(str(tick))
    return float((p // t) * t)


def normalize_limit_price(price: float | None, tick: float | None) -> float | None:
    if price is None:
        return None
    out = floor_to_tick(float(price), tick)
    if out <= 0:
        raise ValueError(f"limit price {price} rounds to {out} at tick {tick}")
    return out
