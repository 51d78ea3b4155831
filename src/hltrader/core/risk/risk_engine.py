# src/hltrader/core/risk/risk_engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from src.hltrader.core.models.order import OrderIntent

if TYPE_CHECKING:
    from src.hltrader.config.loader import Config

log = logging.getLogger("hltrader.risk")

DEFAULT_MAX_LEVERAGE = 10


@dataclass(frozen=True, slots=True)
class SymbolLimits:
    max_leverage: int
    max_notional: float
    enabled: bool = True

    def __post_init__(self) -> None:
        if int(self.max_leverage) < 1:
            raise ValueError(f"max_leverage must be >= 1, got {self.max_leverage}")
        if float(self.max_notional) <= 0:
            raise ValueError(f"max_notional must be > 0, got {self.max_notional}")


@dataclass(frozen=True, slots=True)
class RiskLimits:
    # ---------------- global ceilings ----------------
    max_notional_per_order: float = 10_000.0
    max_notional_per_symbol: float = 25_000.0  # fallback for unlisted symbols

    # ---------------- per-symbol ----------------
    symbol_limits: dict[str, SymbolLimits] = field(default_factory=dict)

    def get_symbol_limits(self, symbol: str) -> SymbolLimits:
        """
        Listed symbol -> its own limits.
        Anything else -> leverage 10, per-symbol fallback notional, enabled.
        """
        sl = self.symbol_limits.get(str(symbol).upper())
        if sl is not None:
            return sl
        return SymbolLimits(
            max_leverage=DEFAULT_MAX_LEVERAGE,
            max_notional=float(self.max_notional_per_symbol),
            enabled=True,
        )


@dataclass(frozen=True, slots=True)
class RiskDecision:
    ok: bool
    reason: str = "ok"

    def __iter__(self):
        # allows: ok, reason = policy.evaluate(...)
        yield self.ok
        yield self.reason


class PriceOracle(Protocol):
    def get_price(self, symbol: str) -> float | None:
        ...


def resolve_price(intent: OrderIntent, oracle: PriceOracle) -> float | None:
    """
    Reference price for notional: limit price when present, else current quote.
    The oracle call is the only I/O in the validation path.
    """
    if intent.limit_price is not None:
        return float(intent.limit_price)
    return oracle.get_price(intent.symbol)


class RiskPolicy:
    """
    Pre-trade checks, in order, first failure wins:
      1. symbol enabled
      2. requested leverage <= symbol max leverage
      3. notional <= global per-order ceiling
      4. notional <= symbol notional limit

    Pure: same (config, intent, price) -> same decision.
    Leverage is only checked here, never applied.
    """

    def evaluate(self, config: "Config", intent: OrderIntent, price: float) -> RiskDecision:
        symbol = intent.symbol
        sl = config.get_symbol_limits(symbol)

        if not sl.enabled:
            return RiskDecision(False, f"Trading disabled for symbol: {symbol}")

        if intent.leverage is not None and int(intent.leverage) > int(sl.max_leverage):
            return RiskDecision(
                False,
                f"Requested leverage {int(intent.leverage)}x exceeds configured maximum "
                f"{int(sl.max_leverage)}x for {symbol}",
            )

        notional = abs(float(intent.qty)) * float(price)
        per_order = float(config.risk_limits.max_notional_per_order)

        if notional > per_order:
            return RiskDecision(
                False,
                f"Order notional ${notional:.2f} exceeds per-order limit ${per_order:.2f}",
            )

        if notional > float(sl.max_notional):
            return RiskDecision(
                False,
                f"Order notional ${notional:.2f} exceeds symbol limit ${float(sl.max_notional):.2f} for {symbol}",
            )

        log.info(
            "Order validation: %s %s @ $%.2f = $%.2f notional (per-order limit: $%.2f, symbol limit: $%.2f)",
            intent.qty, symbol, float(price), notional, per_order, float(sl.max_notional),
        )
        return RiskDecision(True, "ok")
