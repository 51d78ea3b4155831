# src/hltrader/exchanges/hyperliquid/ws.py
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

import websocket
from websocket import (
    ABNF,
    WebSocketConnectionClosedException,
    WebSocketException,
    WebSocketTimeoutException,
)

from src.hltrader.config.loader import Config
from src.hltrader.core.models.market import TradeEvent
from src.hltrader.core.stream.state import (
    ExitReason,
    StreamListener,
    StreamPhase,
    StreamState,
    StreamSummary,
)
from src.hltrader.exchanges.hyperliquid.normalize import norm_trades_frame

log = logging.getLogger("hyperliquid.ws")

POLL_TIMEOUT_S = 0.1
PING_INTERVAL_S = 30.0
PROGRESS_EVERY_IDLE = 50
QUIET_AFTER_IDLE = 100


# ------------------------------------------------------------------
# messages
# ------------------------------------------------------------------

def subscribe_msg(symbol: str) -> dict:
    return {"method": "subscribe", "subscription": {"type": "trades", "coin": symbol}}


def unsubscribe_msg(symbol: str) -> dict:
    return {"method": "unsubscribe", "subscription": {"type": "trades", "coin": symbol}}


PING_MSG = {"method": "ping"}


def classify_frame(text: str | bytes) -> tuple[str, dict | None]:
    """
    Returns (channel, message). Unparseable or channel-less frames -> ("", None).
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError:
            return "", None
    try:
        msg = json.loads(text)
    except ValueError:
        return "", None
    if not isinstance(msg, dict):
        return "", None
    return str(msg.get("channel") or ""), msg


# ------------------------------------------------------------------
# session
# ------------------------------------------------------------------

class StreamSession:
    """
    One trades subscription over one websocket connection.

    CONNECTING -> SUBSCRIBED -> CONFIRMED -> DRAINING -> CLOSED

    Single-threaded: each loop turn checks the time limit, sends a ping
    when due, then waits at most POLL_TIMEOUT_S for a frame. Every exit
    (time limit, server close, transport error) goes through _drain once.
    No reconnect.
    """

    def __init__(
        self,
        config: Config,
        *,
        listener: StreamListener | None = None,
        connect: Callable[..., Any] = websocket.create_connection,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.listener = listener or StreamListener()
        self._connect = connect
        self._clock = clock

    def run(
        self,
        symbol: str,
        duration_s: float,
        on_trade: Optional[Callable[[TradeEvent], None]] = None,
    ) -> StreamSummary:
        symbol = str(symbol).strip().upper()
        on_trade = on_trade or self.listener.on_trade

        log.info("connecting -> %s", self.config.ws_url)
        ws = self._connect(self.config.ws_url)
        try:
            ws.settimeout(POLL_TIMEOUT_S)
            ws.send(json.dumps(subscribe_msg(symbol)))
        except Exception:
            self._close_quietly(ws)
            raise

        now = self._clock()
        state = StreamState(started_at=now, last_heartbeat=now, phase=StreamPhase.SUBSCRIBED)
        self.listener.on_subscribed(symbol, duration_s)

        reason = ExitReason.TRANSPORT_ERROR
        try:
            reason = self._loop(ws, symbol, float(duration_s), state, on_trade)
        finally:
            summary = self._drain(ws, symbol, state, reason)
        return summary

    # ------------------------------------------------------------------
    # loop
    # ------------------------------------------------------------------

    def _loop(
        self,
        ws: Any,
        symbol: str,
        duration_s: float,
        state: StreamState,
        on_trade: Callable[[TradeEvent], None],
    ) -> ExitReason:
        while True:
            now = self._clock()
            state.elapsed = now - state.started_at
            if state.elapsed >= duration_s:
                self.listener.on_duration_reached(duration_s)
                return ExitReason.DURATION

            if now - state.last_heartbeat >= PING_INTERVAL_S:
                try:
                    ws.send(json.dumps(PING_MSG))
                except Exception as e:
                    log.debug("ping send failed: %r", e)
                state.last_heartbeat = now

            try:
                opcode, data = ws.recv_data(control_frame=True)
            except (WebSocketTimeoutException, TimeoutError):
                self._on_idle(symbol, duration_s, state)
                continue
            except WebSocketConnectionClosedException:
                self.listener.on_stream_ended()
                return ExitReason.STREAM_ENDED
            except (WebSocketException, OSError) as e:
                self.listener.on_transport_error(e)
                return ExitReason.TRANSPORT_ERROR

            state.frames += 1
            state.idle_cycles = 0

            if opcode == ABNF.OPCODE_CLOSE:
                self.listener.on_remote_close()
                return ExitReason.REMOTE_CLOSED

            if opcode == ABNF.OPCODE_TEXT:
                self._dispatch(data, symbol, state, on_trade)
            # binary / ping / pong: counted, nothing else

    def _dispatch(
        self,
        data: Any,
        symbol: str,
        state: StreamState,
        on_trade: Callable[[TradeEvent], None],
    ) -> None:
        channel, msg = classify_frame(data)

        if channel == "subscriptionResponse":
            if not state.confirmed:
                state.confirmed = True
                state.phase = StreamPhase.CONFIRMED
                self.listener.on_confirmed(symbol)
            return

        if channel == "trades" and msg is not None:
            for trade in norm_trades_frame(msg):
                state.trades += 1
                on_trade(trade)
            return

        # pong / unknown / unparseable
        return

    def _on_idle(self, symbol: str, duration_s: float, state: StreamState) -> None:
        state.idle_cycles += 1

        if state.confirmed and state.idle_cycles % PROGRESS_EVERY_IDLE == 0:
            elapsed = int(self._clock() - state.started_at)
            self.listener.on_waiting(max(0, int(duration_s) - elapsed))

        if state.idle_cycles == QUIET_AFTER_IDLE:
            self.listener.on_quiet(symbol)

    # ------------------------------------------------------------------
    # cleanup
    # ------------------------------------------------------------------

    def _drain(self, ws: Any, symbol: str, state: StreamState, reason: ExitReason) -> StreamSummary:
        state.phase = StreamPhase.DRAINING
        try:
            ws.send(json.dumps(unsubscribe_msg(symbol)))
        except Exception as e:
            log.debug("unsubscribe send failed: %r", e)
        self._close_quietly(ws)
        state.phase = StreamPhase.CLOSED

        summary = StreamSummary(
            symbol=symbol,
            elapsed_s=self._clock() - state.started_at,
            frames=state.frames,
            trades=state.trades,
            exit_reason=reason,
        )
        self.listener.on_summary(summary)
        return summary

    @staticmethod
    def _close_quietly(ws: Any) -> None:
        try:
            ws.close()
        except Exception as e:
            log.debug("websocket close failed: %r", e)
