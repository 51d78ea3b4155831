# src/hltrader/core/oms/gateway.py
from __future__ import annotations

import logging
from dataclasses import replace

from src.hltrader.config.loader import Config
from src.hltrader.core.models.order import OrderIntent, OrderOutcome, now_ms
from src.hltrader.core.oms.parser import (
    parse_cancel_response,
    parse_leverage_response,
    parse_order_response,
)
from src.hltrader.core.risk.risk_engine import PriceOracle, RiskPolicy, resolve_price
from src.hltrader.exchanges.base.exchange import ExchangeAdapter
from src.hltrader.exchanges.hyperliquid.order_normalizer import normalize_limit_price

DEFAULT_SLIPPAGE = 0.05


class OrderGateway:
    """
    OrderGateway

    Responsibilities:
      ✔ tick-normalize the limit price
      ✔ price + risk-check the intent (no order traffic on reject)
      ✔ apply requested leverage (hard failure if refused)
      ✔ route limit / market open / market close
      ✔ collapse every response shape into OrderOutcome

    Holds no per-order state; safe to reuse across calls.
    """

    # ------------------------------------------------------------------
    # init
    # ------------------------------------------------------------------
    def __init__(
        self,
        *,
        config: Config,
        exchange: ExchangeAdapter,
        oracle: PriceOracle,
        policy: RiskPolicy | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.exchange = exchange
        self.oracle = oracle
        self.policy = policy or RiskPolicy()
        self.logger = logger or logging.getLogger("hltrader.gateway")

    # ------------------------------------------------------------------
    # place
    # ------------------------------------------------------------------
    def place(self, intent: OrderIntent) -> OrderOutcome:
        """
        Policy problems come back as a Rejected outcome. Failures talking to
        the exchange, including the mid-price lookup for market orders, are
        raised to the caller and nothing is submitted.
        """
        ts = now_ms()

        # --- price shaping ---
        if intent.tick_size is not None and intent.limit_price is not None:
            try:
                px = normalize_limit_price(intent.limit_price, intent.tick_size)
            except ValueError as e:
                return OrderOutcome.rejected(str(e), timestamp=ts)
            if px != intent.limit_price:
                self.logger.info("limit price %s -> %s (tick %s)", intent.limit_price, px, intent.tick_size)
                intent = replace(intent, limit_price=px)

        # --- validation ---
        price = resolve_price(intent, self.oracle)
        if price is None:
            return OrderOutcome.rejected(f"Price not found for symbol: {intent.symbol}", timestamp=ts)

        decision = self.policy.evaluate(self.config, intent, price)
        if not decision.ok:
            self.logger.warning("order rejected by risk policy: %s | %r", decision.reason, intent)
            return OrderOutcome.rejected(decision.reason, timestamp=ts)

        # --- leverage ---
        if intent.leverage is not None:
            raw = self.exchange.update_leverage(symbol=intent.symbol, leverage=int(intent.leverage), is_cross=True)
            parse_leverage_response(raw)
            self.logger.info("Leverage set to %dx for %s", intent.leverage, intent.symbol)

        # --- submit ---
        raw = self._submit(intent)
        result = parse_order_response(raw)
        outcome = OrderOutcome(result=result, timestamp=ts)
        self.logger.info("order %r -> %s %s", intent, outcome.status.value, result)
        return outcome

    def _submit(self, intent: OrderIntent):
        if intent.limit_price is not None:
            return self.exchange.limit_order(
                symbol=intent.symbol,
                is_buy=intent.is_buy,
                qty=intent.qty,
                limit_price=float(intent.limit_price),
                tif=intent.tif.value,
                reduce_only=intent.reduce_only,
            )

        slippage = intent.slippage if intent.slippage is not None else DEFAULT_SLIPPAGE
        if intent.reduce_only:
            return self.exchange.market_close(symbol=intent.symbol, qty=intent.qty, slippage=slippage)
        return self.exchange.market_open(
            symbol=intent.symbol,
            is_buy=intent.is_buy,
            qty=intent.qty,
            slippage=slippage,
        )

    # ------------------------------------------------------------------
    # cancel
    # ------------------------------------------------------------------
    def cancel(self, symbol: str, order_id: int) -> None:
        symbol = str(symbol).strip().upper()
        raw = self.exchange.cancel(symbol=symbol, order_id=int(order_id))
        parse_cancel_response(raw)
        self.logger.info("order %s cancelled (%s)", order_id, symbol)
