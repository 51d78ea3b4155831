# src/hltrader/config/loader.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from src.hltrader.core.errors import ConfigError
from src.hltrader.core.risk.risk_engine import RiskLimits, SymbolLimits

log = logging.getLogger("hltrader.config")

DEFAULT_API_URL = "https://api.hyperliquid-testnet.xyz"
DEFAULT_WS_URL = "wss://api.hyperliquid-testnet.xyz/ws"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


# =============================================================================
# Risk limits
# =============================================================================

def default_risk_limits() -> RiskLimits:
    return RiskLimits(
        max_notional_per_order=10_000.0,
        max_notional_per_symbol=25_000.0,
        symbol_limits={
            "BTC": SymbolLimits(max_leverage=10, max_notional=50_000.0),
            "ETH": SymbolLimits(max_leverage=15, max_notional=30_000.0),
            "SOL": SymbolLimits(max_leverage=20, max_notional=20_000.0),
            "ARB": SymbolLimits(max_leverage=25, max_notional=15_000.0),
            "AVAX": SymbolLimits(max_leverage=20, max_notional=15_000.0),
        },
    )


def _parse_risk_limits(raw: Dict[str, Any]) -> RiskLimits:
    base = default_risk_limits()

    symbols_raw = raw.get("symbols")
    if symbols_raw is None:
        symbols = dict(base.symbol_limits)
    elif isinstance(symbols_raw, dict):
        symbols = {}
        for sym, it in symbols_raw.items():
            if not isinstance(it, dict):
                raise ConfigError(f"symbols.{sym} must be a mapping")
            try:
                symbols[str(sym).strip().upper()] = SymbolLimits(
                    max_leverage=int(it.get("max_leverage", 10)),
                    max_notional=float(it["max_notional"]),
                    enabled=bool(it.get("enabled", True)),
                )
            except KeyError:
                raise ConfigError(f"symbols.{sym}.max_notional is required")
            except (TypeError, ValueError) as e:
                raise ConfigError(f"symbols.{sym}: {e}")
    else:
        raise ConfigError("symbols must be a mapping")

    try:
        return RiskLimits(
            max_notional_per_order=float(raw.get("max_notional_per_order", base.max_notional_per_order)),
            max_notional_per_symbol=float(raw.get("max_notional_per_symbol", base.max_notional_per_symbol)),
            symbol_limits=symbols,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid risk limits: {e}")


def load_risk_limits(path: str | Path) -> RiskLimits:
    """
    YAML layout (see config/risk_limits.yaml):

        max_notional_per_order: 10000
        max_notional_per_symbol: 25000
        symbols:
          BTC: {max_leverage: 10, max_notional: 50000, enabled: true}

    Missing top-level keys fall back to the built-in defaults.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"risk config not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"risk config {p} is not valid YAML: {e}")
    if not isinstance(raw, dict):
        raise ConfigError(f"risk config {p} must be a mapping")
    return _parse_risk_limits(raw)


# =============================================================================
# Config
# =============================================================================

@dataclass(frozen=True)
class Config:
    api_url: str
    ws_url: str
    private_key: str = field(repr=False)
    risk_limits: RiskLimits = field(default_factory=default_risk_limits)
    account_address: Optional[str] = None

    @property
    def is_testnet(self) -> bool:
        return "testnet" in self.api_url

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        return self.risk_limits.get_symbol_limits(symbol)

    def is_symbol_enabled(self, symbol: str) -> bool:
        return self.get_symbol_limits(symbol).enabled

    def get_max_leverage(self, symbol: str) -> int:
        return self.get_symbol_limits(symbol).max_leverage

    def get_max_notional(self, symbol: str) -> float:
        return self.get_symbol_limits(symbol).max_notional


def load_config(*, env_file: Optional[str] = ".env") -> Config:
    """
    Build the process-wide Config snapshot.

    Env:
      HYPERLIQUID_API_URL          (testnet default)
      HYPERLIQUID_WS_URL           (testnet default)
      PRIVATE_KEY                  required
      HYPERLIQUID_ACCOUNT_ADDRESS  optional, trade on behalf of this address
      HL_RISK_CONFIG               optional YAML with risk limits
    """
    if env_file:
        load_dotenv(env_file, override=False)

    private_key = _get_env("PRIVATE_KEY")
    if not private_key:
        raise ConfigError("PRIVATE_KEY must be set")

    risk_path = _get_env("HL_RISK_CONFIG")
    if risk_path:
        risk_limits = load_risk_limits(risk_path)
        log.info("risk limits loaded from %s (%d symbols)", risk_path, len(risk_limits.symbol_limits))
    else:
        risk_limits = default_risk_limits()

    return Config(
        api_url=_get_env("HYPERLIQUID_API_URL", DEFAULT_API_URL).rstrip("/"),
        ws_url=_get_env("HYPERLIQUID_WS_URL", DEFAULT_WS_URL),
        private_key=private_key,
        risk_limits=risk_limits,
        account_address=_get_env("HYPERLIQUID_ACCOUNT_ADDRESS"),
    )
