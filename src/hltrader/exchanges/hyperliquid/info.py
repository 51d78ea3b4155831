# src/hltrader/exchanges/hyperliquid/info.py
from __future__ import annotations

import logging

from src.hltrader.config.loader import Config
from src.hltrader.core.models.market import BalanceResponse, SpotResponse, StatusResponse
from src.hltrader.exchanges.hyperliquid.exchange import wallet_address
from src.hltrader.exchanges.hyperliquid.normalize import norm_balances, norm_mid, norm_spot, norm_status
from src.hltrader.exchanges.hyperliquid.rest import HyperliquidInfoREST

log = logging.getLogger("hyperliquid.info")


class InfoService:
    """Read-only queries: perp markets, account balances, spot markets."""

    def __init__(self, config: Config, *, rest: HyperliquidInfoREST | None = None):
        self.config = config
        self.rest = rest or HyperliquidInfoREST(base_url=config.api_url)

    @property
    def wallet_address(self) -> str:
        return self.config.account_address or wallet_address(self.config.private_key)

    def get_status(self) -> StatusResponse:
        status = norm_status(self.rest.meta_and_asset_ctxs())
        log.info("status: %d active markets", status.total_markets)
        return status

    def get_balances(self) -> BalanceResponse:
        addr = self.wallet_address
        balances = norm_balances(self.rest.clearinghouse_state(addr), wallet_address=addr)
        log.info("balances for %s: %d open positions", addr, len(balances.positions))
        return balances

    def get_spot_markets(self) -> SpotResponse:
        return norm_spot(self.rest.spot_meta_and_asset_ctxs())


class MidPriceOracle:
    """PriceOracle backed by allMids; None when the symbol has no mid."""

    def __init__(self, rest: HyperliquidInfoREST):
        self.rest = rest

    def get_price(self, symbol: str) -> float | None:
        return norm_mid(self.rest.all_mids(), symbol)
