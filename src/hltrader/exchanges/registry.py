from __future__ import annotations

from src.hltrader.config.loader import Config
from src.hltrader.core.oms.gateway import OrderGateway
from src.hltrader.exchanges.base.exchange import ExchangeAdapter
from src.hltrader.exchanges.hyperliquid.exchange import HyperliquidExchange
from src.hltrader.exchanges.hyperliquid.info import InfoService, MidPriceOracle


def build_exchange(name: str, config: Config) -> ExchangeAdapter:
    name = name.lower()
    if name == "hyperliquid":
        return HyperliquidExchange(config)
    raise ValueError(f"Unknown exchange: {name}")


def build_gateway(config: Config, *, exchange: str = "hyperliquid", info: InfoService | None = None) -> OrderGateway:
    info = info or InfoService(config)
    return OrderGateway(
        config=config,
        exchange=build_exchange(exchange, config),
        oracle=MidPriceOracle(info.rest),
    )
