# src/hltrader/core/models/market.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field

from src.hltrader.core.models.enums import Side


# ------------------------------------------------------------------
# stream
# ------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TradeEvent:
    """One public trade from the `trades` channel."""

    symbol: str
    side: Side
    price: float
    size: float
    time_ms: int
    trade_id: int
    hash: str
    users: tuple[str, str] = ("", "")

    @property
    def short_hash(self) -> str:
        if len(self.hash) > 8:
            return f"{self.hash[:8]}..."
        return self.hash


# ------------------------------------------------------------------
# info responses
# ------------------------------------------------------------------

@dataclass(slots=True)
class MarketInfo:
    symbol: str
    mark_price: float
    volume_24h: float
    funding_rate: float
    max_leverage: int
    open_interest: float


@dataclass(slots=True)
class StatusResponse:
    markets: list[MarketInfo] = field(default_factory=list)
    total_markets: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class PositionInfo:
    symbol: str
    size: float
    entry_price: float
    leverage: int
    unrealized_pnl: float
    position_value: float


@dataclass(slots=True)
class BalanceResponse:
    wallet_address: str
    account_value: float
    withdrawable: float
    cross_margin_used: float
    positions: list[PositionInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class SpotTokenInfo:
    name: str
    decimals: int
    token_id: str


@dataclass(slots=True)
class SpotPairInfo:
    name: str
    mark_price: float
    mid_price: float
    volume_24h: float


@dataclass(slots=True)
class SpotResponse:
    tokens: list[SpotTokenInfo] = field(default_factory=list)
    pairs: list[SpotPairInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
