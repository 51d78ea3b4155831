# src/hltrader/exchanges/hyperliquid/exchange.py
from __future__ import annotations

import logging
from typing import Any, Optional

from eth_account import Account
from hyperliquid.exchange import Exchange

from src.hltrader.config.loader import Config
from src.hltrader.core.errors import ConfigError
from src.hltrader.exchanges.base.exchange import ExchangeAdapter

log = logging.getLogger("hyperliquid.exchange")


def _signer(private_key: str):
    try:
        return Account.from_key(private_key)
    except Exception as e:
        raise ConfigError(f"Failed to parse private key: {e}") from e


def wallet_address(private_key: str) -> str:
    """Checksummed address of the signing key."""
    return _signer(private_key).address


class HyperliquidExchange(ExchangeAdapter):
    """
    Thin wrapper over hyperliquid-python-sdk `Exchange`.

    The SDK client fetches meta on construction; it is built on the first
    signed call.
    """

    name = "hyperliquid"

    def __init__(self, config: Config, *, timeout: float = 30.0, client: Exchange | None = None):
        self.config = config
        self.timeout = float(timeout)
        self._client = client

    @property
    def client(self) -> Exchange:
        if self._client is None:
            wallet = _signer(self.config.private_key)
            self._client = Exchange(
                wallet,
                base_url=self.config.api_url,
                account_address=self.config.account_address,
                timeout=self.timeout,
            )
            log.info("exchange client ready (%s, signer=%s)", self.config.api_url, wallet.address)
        return self._client

    # ---- account ----

    def update_leverage(self, *, symbol: str, leverage: int, is_cross: bool = True) -> Any:
        log.info("update_leverage %s %dx cross=%s", symbol, leverage, is_cross)
        return self.client.update_leverage(int(leverage), symbol, is_cross=is_cross)

    # ---- trading ----

    def limit_order(
        self,
        *,
        symbol: str,
        is_buy: bool,
        qty: float,
        limit_price: float,
        tif: str,
        reduce_only: bool = False,
    ) -> Any:
        log.info(
            "limit_order %s %s qty=%s px=%s tif=%s reduce=%s",
            symbol, "BUY" if is_buy else "SELL", qty, limit_price, tif, reduce_only,
        )
        return self.client.order(
            symbol,
            is_buy,
            float(qty),
            float(limit_price),
            order_type={"limit": {"tif": tif}},
            reduce_only=bool(reduce_only),
        )

    def market_open(self, *, symbol: str, is_buy: bool, qty: float, slippage: float) -> Any:
        log.info("market_open %s %s qty=%s slippage=%s", symbol, "BUY" if is_buy else "SELL", qty, slippage)
        return self.client.market_open(symbol, is_buy, float(qty), None, float(slippage))

    def market_close(self, *, symbol: str, qty: Optional[float], slippage: float) -> Any:
        log.info("market_close %s qty=%s slippage=%s", symbol, qty, slippage)
        return self.client.market_close(symbol, qty, None, float(slippage))

    def cancel(self, *, symbol: str, order_id: int) -> Any:
        log.info("cancel %s oid=%s", symbol, order_id)
        return self.client.cancel(symbol, int(order_id))
