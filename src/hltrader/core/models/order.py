# src/hltrader/core/models/order.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Union

from src.hltrader.core.models.enums import OrderType, OutcomeStatus, Side, TimeInForce


MAX_SLIPPAGE = 0.10


def _coerce_side(v: Union[Side, str]) -> Side:
    if isinstance(v, Side):
        return v
    s = str(v or "").strip().upper()
    if s in ("BUY", "B", "LONG"):
        return Side.BUY
    if s in ("SELL", "S", "SHORT"):
        return Side.SELL
    raise ValueError(f"side must be BUY or SELL, got {v!r}")


def _coerce_tif(v: Union[TimeInForce, str]) -> TimeInForce:
    if isinstance(v, TimeInForce):
        return v
    s = str(v or "").strip().lower()
    for tif in TimeInForce:
        if tif.value.lower() == s:
            return tif
    raise ValueError(f"tif must be one of Gtc, Ioc, Alo, got {v!r}")


@dataclass(slots=True)
class OrderIntent:
    """
    OrderIntent: one operator order request.

    This object is:
      • built once by the CLI
      • priced and validated by RiskPolicy
      • consumed exactly once by OrderGateway

    No limit price means a market order.
    """

    symbol: str
    side: Side
    qty: float

    limit_price: Optional[float] = None
    leverage: Optional[int] = None
    reduce_only: bool = False
    tif: TimeInForce = TimeInForce.GTC

    # --- market / price shaping ---
    slippage: Optional[float] = None
    tick_size: Optional[float] = None

    def __post_init__(self) -> None:
        self.symbol = str(self.symbol or "").strip().upper()
        if not self.symbol:
            raise ValueError("symbol is required")

        self.side = _coerce_side(self.side)
        self.tif = _coerce_tif(self.tif)

        self.qty = float(self.qty)
        if self.qty <= 0:
            raise ValueError(f"qty must be > 0, got {self.qty}")

        if self.limit_price is not None:
            self.limit_price = float(self.limit_price)
            if self.limit_price <= 0:
                raise ValueError(f"limit price must be > 0, got {self.limit_price}")

        if self.leverage is not None:
            self.leverage = int(self.leverage)
            if self.leverage < 1:
                raise ValueError(f"leverage must be >= 1, got {self.leverage}")

        if self.slippage is not None:
            self.slippage = float(self.slippage)
            if not 0.0 <= self.slippage <= MAX_SLIPPAGE:
                raise ValueError("slippage must be between 0% and 10% (0.0 to 0.1)")

        if self.tick_size is not None:
            self.tick_size = float(self.tick_size)
            if self.tick_size <= 0:
                raise ValueError("tick size must be greater than 0")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @property
    def order_type(self) -> OrderType:
        return OrderType.LIMIT if self.limit_price is not None else OrderType.MARKET

    @property
    def is_buy(self) -> bool:
        return self.side.is_buy

    def __repr__(self) -> str:
        return (
            f"OrderIntent("
            f"{self.symbol} {self.side.value} "
            f"qty={self.qty} "
            f"type={self.order_type.value} "
            f"px={self.limit_price} "
            f"lev={self.leverage} "
            f"reduce={self.reduce_only} "
            f"tif={self.tif.value}"
            f")"
        )


# ----------------------------------------------------------------------
# outcome variants
# ----------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Filled:
    order_id: int
    filled_qty: float = 0.0
    avg_price: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Resting:
    order_id: int


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: str


OrderResult = Union[Filled, Resting, Rejected]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class OrderOutcome:
    """Single normalized answer for every placement path."""

    result: OrderResult
    timestamp: int = field(default_factory=now_ms)

    @property
    def status(self) -> OutcomeStatus:
        if isinstance(self.result, Rejected):
            return OutcomeStatus.ERROR
        return OutcomeStatus.SUCCESS

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def rejected(cls, reason: str, *, timestamp: int) -> "OrderOutcome":
        return cls(result=Rejected(reason=str(reason)), timestamp=int(timestamp))

    def to_dict(self) -> dict:
        r = self.result
        if isinstance(r, Filled):
            body = {"type": "Filled", "order_id": r.order_id, "filled_qty": r.filled_qty, "avg_price": r.avg_price}
        elif isinstance(r, Resting):
            body = {"type": "Resting", "order_id": r.order_id}
        else:
            body = {"type": "Rejected", "reason": r.reason}
        return {"status": self.status.value, "result": body, "timestamp": self.timestamp}
