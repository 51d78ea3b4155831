# src/hltrader/core/stream/state.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from src.hltrader.core.models.market import TradeEvent

log = logging.getLogger("hltrader.stream")


class StreamPhase(str, Enum):
    CONNECTING = "CONNECTING"
    SUBSCRIBED = "SUBSCRIBED"
    CONFIRMED = "CONFIRMED"
    DRAINING = "DRAINING"
    CLOSED = "CLOSED"


class ExitReason(str, Enum):
    DURATION = "duration"
    REMOTE_CLOSED = "remote_closed"
    STREAM_ENDED = "stream_ended"
    TRANSPORT_ERROR = "transport_error"


@dataclass(slots=True)
class StreamState:
    """Counters for one session; owned by a single StreamSession.run call."""

    started_at: float
    last_heartbeat: float
    elapsed: float = 0.0
    frames: int = 0
    trades: int = 0
    idle_cycles: int = 0
    confirmed: bool = False
    phase: StreamPhase = StreamPhase.CONNECTING


@dataclass(frozen=True, slots=True)
class StreamSummary:
    symbol: str
    elapsed_s: float
    frames: int
    trades: int
    exit_reason: ExitReason


class StreamListener:
    """
    Presentation hooks for a stream session.
    Defaults only log; the CLI overrides them to print.
    """

    def on_subscribed(self, symbol: str, duration_s: float) -> None:
        log.info("subscribed to trades for %s (%ss)", symbol, duration_s)

    def on_confirmed(self, symbol: str) -> None:
        log.info("subscription confirmed for %s", symbol)

    def on_trade(self, trade: TradeEvent) -> None:
        log.debug("trade %s %s %s @ %s", trade.symbol, trade.side.value, trade.size, trade.price)

    def on_waiting(self, remaining_s: int) -> None:
        log.debug("waiting for trades (%ss remaining)", remaining_s)

    def on_quiet(self, symbol: str) -> None:
        log.warning("no trades for %s in 10+ seconds; market may be quiet or connection issue", symbol)

    def on_duration_reached(self, duration_s: float) -> None:
        log.info("stream duration of %ss reached", duration_s)

    def on_remote_close(self) -> None:
        log.warning("websocket closed by server")

    def on_stream_ended(self) -> None:
        log.warning("websocket connection ended")

    def on_transport_error(self, err: Exception) -> None:
        log.error("websocket error: %s", err)

    def on_summary(self, summary: StreamSummary) -> None:
        log.info(
            "stream %s done: %.1fs frames=%d trades=%d exit=%s",
            summary.symbol, summary.elapsed_s, summary.frames, summary.trades, summary.exit_reason.value,
        )
