from __future__ import annotations

import pytest

from src.hltrader.config.loader import Config, default_risk_limits

from tests.fakes import FakeExchange, FakeOracle

TEST_KEY = "0x" + "11" * 32


@pytest.fixture
def cfg() -> Config:
    return Config(
        api_url="https://api.hyperliquid-testnet.xyz",
        ws_url="wss://api.hyperliquid-testnet.xyz/ws",
        private_key=TEST_KEY,
        risk_limits=default_risk_limits(),
        account_address="0x000000000000000000000000000000000000dEaD",
    )


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle({"BTC": 50_000.0, "ETH": 3_000.0, "DOGE": 0.1})
