from __future__ import annotations

import pytest

from src.hltrader.core.errors import ExchangeError
from src.hltrader.core.models.enums import OutcomeStatus
from src.hltrader.core.models.order import Filled, OrderIntent, Rejected, Resting
from src.hltrader.core.oms.gateway import DEFAULT_SLIPPAGE, OrderGateway

from tests.fakes import FakeExchange, FakeOracle


def make(cfg, exchange, oracle):
    return OrderGateway(config=cfg, exchange=exchange, oracle=oracle)


def test_risk_reject_makes_no_exchange_call(cfg, exchange, oracle):
    out = make(cfg, exchange, oracle).place(OrderIntent("BTC", "BUY", 0.5, limit_price=50_000.0))
    assert out.status is OutcomeStatus.ERROR
    assert isinstance(out.result, Rejected)
    assert "per-order limit" in out.result.reason
    assert exchange.calls == []
    assert out.timestamp > 0


def test_leverage_reject_makes_no_exchange_call(cfg, exchange, oracle):
    out = make(cfg, exchange, oracle).place(OrderIntent("ETH", "BUY", 1, limit_price=3_000.0, leverage=20))
    assert not out.ok
    assert exchange.calls == []


def test_missing_mid_is_rejected(cfg, exchange):
    out = make(cfg, exchange, FakeOracle({})).place(OrderIntent("XYZ", "BUY", 1))
    assert out.result == Rejected("Price not found for symbol: XYZ")
    assert exchange.calls == []


def test_limit_order_routed(cfg, exchange, oracle):
    out = make(cfg, exchange, oracle).place(
        OrderIntent("ETH", "SELL", 1, limit_price=3_100.0, tif="Alo", reduce_only=True)
    )
    assert out.result == Resting(order_id=77)
    assert out.status is OutcomeStatus.SUCCESS
    name, kw = exchange.calls[0]
    assert name == "limit_order"
    assert kw == {
        "symbol": "ETH",
        "is_buy": False,
        "qty": 1.0,
        "limit_price": 3_100.0,
        "tif": "Alo",
        "reduce_only": True,
    }
    # limit orders never ask the oracle
    assert oracle.asked == []


def test_leverage_applied_before_submit(cfg, exchange, oracle):
    make(cfg, exchange, oracle).place(OrderIntent("BTC", "BUY", 0.1, leverage=5))
    assert exchange.names() == ["update_leverage", "market_open"]
    assert exchange.calls[0][1] == {"symbol": "BTC", "leverage": 5, "is_cross": True}


def test_leverage_failure_is_hard_error(cfg, oracle):
    ex = FakeExchange(leverage_reply={"status": "err", "response": "Invalid leverage"})
    with pytest.raises(ExchangeError, match="Invalid leverage"):
        make(cfg, ex, oracle).place(OrderIntent("BTC", "BUY", 0.1, leverage=5))
    assert ex.names() == ["update_leverage"]


def test_market_open_default_slippage(cfg, exchange, oracle):
    make(cfg, exchange, oracle).place(OrderIntent("BTC", "BUY", 0.1))
    name, kw = exchange.calls[0]
    assert name == "market_open"
    assert kw == {"symbol": "BTC", "is_buy": True, "qty": 0.1, "slippage": DEFAULT_SLIPPAGE}


def test_market_open_custom_slippage(cfg, exchange, oracle):
    make(cfg, exchange, oracle).place(OrderIntent("BTC", "SELL", 0.1, slippage=0.01))
    assert exchange.calls[0][1]["slippage"] == 0.01


def test_reduce_only_market_is_close(cfg, exchange, oracle):
    make(cfg, exchange, oracle).place(OrderIntent("ETH", "SELL", 2, reduce_only=True))
    name, kw = exchange.calls[0]
    assert name == "market_close"
    assert kw == {"symbol": "ETH", "qty": 2.0, "slippage": DEFAULT_SLIPPAGE}


def test_market_close_without_position(cfg, oracle):
    ex = FakeExchange()
    ex.order_reply = None
    ex.market_close = lambda **kw: None
    out = make(cfg, ex, oracle).place(OrderIntent("ETH", "SELL", 2, reduce_only=True))
    assert out.result == Rejected("No response data")
    assert out.status is OutcomeStatus.ERROR


def test_filled_market_order(cfg, oracle):
    ex = FakeExchange(order_reply={
        "status": "ok",
        "response": {"type": "order", "data": {"statuses": [{"filled": {"totalSz": "0.1", "avgPx": "50010", "oid": 3}}]}},
    })
    out = make(cfg, ex, oracle).place(OrderIntent("BTC", "BUY", 0.1))
    assert out.result == Filled(order_id=3, filled_qty=0.1, avg_price=50_010.0)
    assert out.to_dict()["result"]["type"] == "Filled"


def test_exchange_per_order_error_is_error_status(cfg, oracle):
    ex = FakeExchange(order_reply={
        "status": "ok",
        "response": {"type": "order", "data": {"statuses": [{"error": "Insufficient margin"}]}},
    })
    out = make(cfg, ex, oracle).place(OrderIntent("BTC", "BUY", 0.1))
    assert out.result == Rejected("Insufficient margin")
    assert out.status is OutcomeStatus.ERROR


def test_tick_size_floors_limit_before_validation(cfg, exchange, oracle):
    make(cfg, exchange, oracle).place(OrderIntent("ETH", "BUY", 1, limit_price=3_001.37, tick_size=0.5))
    assert exchange.calls[0][1]["limit_price"] == 3_001.0


def test_tick_size_larger_than_price_rejects(cfg, exchange, oracle):
    out = make(cfg, exchange, oracle).place(OrderIntent("DOGE", "BUY", 10, limit_price=0.3, tick_size=1.0))
    assert isinstance(out.result, Rejected)
    assert exchange.calls == []


def test_transport_error_propagates(cfg, oracle):
    ex = FakeExchange()

    def boom(**kw):
        raise ConnectionError("reset by peer")

    ex.market_open = boom
    with pytest.raises(ConnectionError):
        make(cfg, ex, oracle).place(OrderIntent("BTC", "BUY", 0.1))


def test_price_lookup_failure_propagates(cfg, exchange):
    class DownOracle:
        def get_price(self, symbol):
            raise RuntimeError("Hyperliquid info allMids failed after 3 retries")

    with pytest.raises(RuntimeError, match="allMids"):
        make(cfg, exchange, DownOracle()).place(OrderIntent("BTC", "BUY", 0.1))
    assert exchange.calls == []


def test_cancel(cfg, exchange, oracle):
    make(cfg, exchange, oracle).cancel("eth", 42)
    assert exchange.calls == [("cancel", {"symbol": "ETH", "order_id": 42})]


def test_cancel_failure_raises(cfg, oracle):
    ex = FakeExchange(cancel_reply={"status": "err", "response": "unknown oid"})
    with pytest.raises(ExchangeError):
        make(cfg, ex, oracle).cancel("ETH", 42)
