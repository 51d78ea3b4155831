# src/hltrader/exchanges/base/exchange.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


# -------- base exchange --------

class ExchangeAdapter(ABC):
    """
    Base exchange adapter (signed endpoints only).

    Every call returns the raw exchange payload; interpreting it is the
    gateway's job (src/hltrader/core/oms/parser.py).
    Implementations MUST NOT validate risk or retry submissions.
    """

    name: str

    # ---- account ----

    @abstractmethod
    def update_leverage(self, *, symbol: str, leverage: int, is_cross: bool = True) -> Any:
        ...

    # ---- trading ----

    @abstractmethod
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
        ...

    @abstractmethod
    def market_open(self, *, symbol: str, is_buy: bool, qty: float, slippage: float) -> Any:
        ...

    @abstractmethod
    def market_close(self, *, symbol: str, qty: Optional[float], slippage: float) -> Any:
        """May return None when there is nothing to close."""
        ...

    @abstractmethod
    def cancel(self, *, symbol: str, order_id: int) -> Any:
        ...
