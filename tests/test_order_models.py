from __future__ import annotations

import pytest

from src.hltrader.core.models.enums import OrderType, OutcomeStatus, Side, TimeInForce
from src.hltrader.core.models.order import OrderIntent, OrderOutcome, Rejected, Resting
from src.hltrader.exchanges.hyperliquid.order_normalizer import floor_to_tick, normalize_limit_price


def test_intent_normalizes_fields():
    i = OrderIntent(" eth ", "sell", "1.5", tif="ioc")
    assert i.symbol == "ETH"
    assert i.side is Side.SELL
    assert i.qty == 1.5
    assert i.tif is TimeInForce.IOC
    assert i.order_type is OrderType.MARKET
    assert not i.is_buy


def test_limit_intent():
    i = OrderIntent("BTC", Side.BUY, 0.1, limit_price=50_000)
    assert i.order_type is OrderType.LIMIT
    assert i.is_buy


@pytest.mark.parametrize(
    "kw",
    [
        {"qty": 0},
        {"qty": -1},
        {"limit_price": 0},
        {"leverage": 0},
        {"slippage": 0.2},
        {"slippage": -0.01},
        {"tick_size": 0},
        {"tif": "Fok"},
        {"side": "HOLD"},
        {"symbol": "  "},
    ],
)
def test_intent_rejects_bad_fields(kw):
    base = {"symbol": "BTC", "side": "BUY", "qty": 1}
    base.update(kw)
    with pytest.raises(ValueError):
        OrderIntent(**base)


def test_slippage_bounds_inclusive():
    assert OrderIntent("BTC", "BUY", 1, slippage=0.0).slippage == 0.0
    assert OrderIntent("BTC", "BUY", 1, slippage=0.1).slippage == 0.1


def test_outcome_status_follows_result():
    assert OrderOutcome(Resting(1), timestamp=5).status is OutcomeStatus.SUCCESS
    rej = OrderOutcome.rejected("nope", timestamp=5)
    assert rej.status is OutcomeStatus.ERROR
    assert rej.to_dict() == {"status": "error", "result": {"type": "Rejected", "reason": "nope"}, "timestamp": 5}


@pytest.mark.parametrize(
    "price,tick,want",
    [
        (3001.37, 0.5, 3001.0),
        (0.123456, 0.0001, 0.1234),
        (100.0, 0.1, 100.0),
        (99.99, 1.0, 99.0),
        (42.0, None, 42.0),
    ],
)
def test_floor_to_tick(price, tick, want):
    assert floor_to_tick(price, tick) == pytest.approx(want)


def test_normalize_limit_price():
    assert normalize_limit_price(None, 0.1) is None
    with pytest.raises(ValueError):
        normalize_limit_price(0.05, 0.1)
