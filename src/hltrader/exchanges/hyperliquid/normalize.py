# src/hltrader/exchanges/hyperliquid/normalize.py
from __future__ import annotations

from typing import Any

from src.hltrader.core.errors import ExchangeError
from src.hltrader.core.models.enums import Side
from src.hltrader.core.models.market import (
    BalanceResponse,
    MarketInfo,
    PositionInfo,
    SpotPairInfo,
    SpotResponse,
    SpotTokenInfo,
    StatusResponse,
    TradeEvent,
)

MIN_POSITION_SIZE = 0.0001


def _num(v: Any) -> float:
    # exchange sends numbers as strings; anything unparseable counts as 0
    try:
        if v is None or v == "":
            return 0.0
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def _int(v: Any) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


def _pair(payload: Any, what: str) -> tuple[Any, Any]:
    if not isinstance(payload, list):
        raise ExchangeError(f"{what}: expected array response")
    if len(payload) != 2:
        raise ExchangeError(f"{what}: expected 2 elements in response")
    return payload[0], payload[1]


# ------------------------------------------------------------------
# perps
# ------------------------------------------------------------------

def norm_status(payload: Any) -> StatusResponse:
    meta, ctxs = _pair(payload, "metaAndAssetCtxs")
    universe = meta.get("universe") if isinstance(meta, dict) else None
    if not isinstance(universe, list) or not isinstance(ctxs, list):
        raise ExchangeError("metaAndAssetCtxs: expected universe array")

    markets: list[MarketInfo] = []
    for asset, ctx in zip(universe, ctxs):
        if not isinstance(asset, dict) or asset.get("isDelisted"):
            continue
        ctx = ctx if isinstance(ctx, dict) else {}
        markets.append(
            MarketInfo(
                symbol=str(asset.get("name", "")),
                mark_price=_num(ctx.get("markPx")),
                volume_24h=_num(ctx.get("dayNtlVlm")),
                funding_rate=_num(ctx.get("funding")),
                max_leverage=_int(asset.get("maxLeverage")),
                open_interest=_num(ctx.get("openInterest")),
            )
        )
    return StatusResponse(markets=markets, total_markets=len(markets))


def norm_position(raw: Any) -> PositionInfo | None:
    pos = raw.get("position") if isinstance(raw, dict) else None
    if not isinstance(pos, dict):
        return None
    size = _num(pos.get("szi"))
    if abs(size) <= MIN_POSITION_SIZE:
        return None
    lev = pos.get("leverage")
    return PositionInfo(
        symbol=str(pos.get("coin", "")),
        size=size,
        entry_price=_num(pos.get("entryPx")),
        leverage=_int(lev.get("value")) if isinstance(lev, dict) else _int(lev),
        unrealized_pnl=_num(pos.get("unrealizedPnl")),
        position_value=_num(pos.get("positionValue")),
    )


def norm_balances(state: Any, *, wallet_address: str) -> BalanceResponse:
    if not isinstance(state, dict) or not isinstance(state.get("marginSummary"), dict):
        raise ExchangeError("clearinghouseState: missing marginSummary")

    positions = [p for p in (norm_position(x) for x in state.get("assetPositions") or []) if p is not None]
    return BalanceResponse(
        wallet_address=wallet_address,
        account_value=_num(state["marginSummary"].get("accountValue")),
        withdrawable=_num(state.get("withdrawable")),
        cross_margin_used=_num(state.get("crossMarginUsed")),
        positions=positions,
    )


def norm_mid(mids: Any, symbol: str) -> float | None:
    if not isinstance(mids, dict):
        raise ExchangeError("allMids: expected object response")
    v = mids.get(symbol)
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise ExchangeError(f"allMids: failed to parse market price for {symbol}: {v!r}") from e


# ------------------------------------------------------------------
# spot
# ------------------------------------------------------------------

def norm_spot(payload: Any) -> SpotResponse:
    meta, ctxs = _pair(payload, "spotMetaAndAssetCtxs")
    if not isinstance(meta, dict) or not isinstance(ctxs, list):
        raise ExchangeError("spotMetaAndAssetCtxs: malformed meta")

    tokens = [
        SpotTokenInfo(
            name=str(t.get("name", "")),
            decimals=_int(t.get("szDecimals")),
            token_id=str(t.get("tokenId", "")),
        )
        for t in meta.get("tokens") or []
        if isinstance(t, dict)
    ]

    pairs: list[SpotPairInfo] = []
    for pair, ctx in zip(meta.get("universe") or [], ctxs):
        if not isinstance(pair, dict):
            continue
        ctx = ctx if isinstance(ctx, dict) else {}
        pairs.append(
            SpotPairInfo(
                name=str(pair.get("name", "")),
                mark_price=_num(ctx.get("markPx")),
                mid_price=_num(ctx.get("midPx")),
                volume_24h=_num(ctx.get("dayNtlVlm")),
            )
        )
    return SpotResponse(tokens=tokens, pairs=pairs)


# ------------------------------------------------------------------
# stream
# ------------------------------------------------------------------

def norm_trade(raw: dict) -> TradeEvent:
    users = raw.get("users") or ("", "")
    return TradeEvent(
        symbol=str(raw["coin"]),
        side=Side.BUY if raw["side"] == "B" else Side.SELL,
        price=_num(raw["px"]),
        size=_num(raw["sz"]),
        time_ms=int(raw["time"]),
        trade_id=int(raw["tid"]),
        hash=str(raw["hash"]),
        users=(str(users[0]), str(users[1])),
    )


def norm_trades_frame(msg: dict) -> list[TradeEvent]:
    """
    {"channel": "trades", "data": [{coin, side, px, sz, time, hash, tid, users}, ...]}

    A frame with any malformed trade is dropped whole.
    """
    data = msg.get("data")
    if not isinstance(data, list):
        return []
    try:
        return [norm_trade(t) for t in data]
    except (KeyError, TypeError, ValueError, IndexError):
        return []
