from __future__ import annotations

import json

import pytest
from websocket import ABNF, WebSocketConnectionClosedException, WebSocketException, WebSocketTimeoutException

from src.hltrader.core.stream.state import ExitReason, StreamListener
from src.hltrader.exchanges.hyperliquid.ws import StreamSession, classify_frame


TIMEOUT = object()


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t


class FakeSocket:
    """
    Script entries:
      TIMEOUT                    -> recv raises WebSocketTimeoutException, clock += 0.1
      (opcode, data)             -> returned as a frame
      an Exception instance      -> raised
    Once the script is exhausted every recv times out.
    """

    def __init__(self, clock: FakeClock, script=(), *, fail_send: bool = False):
        self.clock = clock
        self.script = list(script)
        self.sent: list[dict] = []
        self.closed = 0
        self.timeout = None
        self.fail_send = fail_send

    def settimeout(self, t):
        self.timeout = t

    def send(self, payload):
        msg = json.loads(payload)
        if self.fail_send and msg.get("method") != "subscribe":
            raise WebSocketConnectionClosedException("gone")
        self.sent.append(msg)

    def recv_data(self, control_frame=False):
        assert control_frame is True
        item = self.script.pop(0) if self.script else TIMEOUT
        if item is TIMEOUT:
            self.clock.t += 0.1
            raise WebSocketTimeoutException("timed out")
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed += 1

    def methods(self) -> list[str]:
        return [m["method"] for m in self.sent]


class Recorder(StreamListener):
    def __init__(self):
        self.events: list[tuple] = []

    def on_subscribed(self, symbol, duration_s):
        self.events.append(("subscribed", symbol))

    def on_confirmed(self, symbol):
        self.events.append(("confirmed", symbol))

    def on_trade(self, trade):
        self.events.append(("trade", trade.trade_id))

    def on_waiting(self, remaining_s):
        self.events.append(("waiting", remaining_s))

    def on_quiet(self, symbol):
        self.events.append(("quiet", symbol))

    def on_remote_close(self):
        self.events.append(("remote_close",))

    def on_stream_ended(self):
        self.events.append(("ended",))

    def on_transport_error(self, err):
        self.events.append(("error", str(err)))

    def on_summary(self, summary):
        self.events.append(("summary", summary))

    def kinds(self, kind):
        return [e for e in self.events if e[0] == kind]


def text(obj) -> tuple[int, bytes]:
    return ABNF.OPCODE_TEXT, json.dumps(obj).encode("utf-8")


CONFIRM = text({"channel": "subscriptionResponse", "data": {"method": "subscribe"}})
PONG = text({"channel": "pong"})


def trades(*tids):
    return text({
        "channel": "trades",
        "data": [
            {
                "coin": "BTC", "side": "B" if i % 2 else "A", "px": "50000.5", "sz": "0.01",
                "time": 1700000000000, "hash": "0xabcdef0123456789", "tid": tid,
                "users": ["0x1", "0x2"],
            }
            for i, tid in enumerate(tids)
        ],
    })


def run(cfg, script, duration=5, **sock_kw):
    clock = FakeClock()
    sock = FakeSocket(clock, script, **sock_kw)
    rec = Recorder()
    urls = []

    def connect(url):
        urls.append(url)
        return sock

    summary = StreamSession(cfg, listener=rec, connect=connect, clock=clock).run("btc", duration)
    return summary, sock, rec, urls


def test_subscribe_then_duration_exit(cfg):
    summary, sock, rec, urls = run(cfg, [], duration=1)
    assert urls == [cfg.ws_url]
    assert sock.timeout == pytest.approx(0.1)
    assert sock.sent[0] == {"method": "subscribe", "subscription": {"type": "trades", "coin": "BTC"}}
    assert summary.exit_reason is ExitReason.DURATION
    assert summary.frames == 0
    assert summary.trades == 0
    assert summary.elapsed_s >= 1


def test_confirmation_counted_once(cfg):
    summary, _, rec, _ = run(cfg, [CONFIRM, CONFIRM, PONG])
    assert rec.kinds("confirmed") == [("confirmed", "BTC")]
    assert summary.frames == 3


def test_trades_dispatched_in_order(cfg):
    summary, _, rec, _ = run(cfg, [CONFIRM, trades(1, 2, 3), PONG, trades(4)])
    assert [e[1] for e in rec.kinds("trade")] == [1, 2, 3, 4]
    assert summary.trades == 4
    assert summary.frames == 4


def test_garbage_and_unknown_frames_ignored(cfg):
    script = [
        (ABNF.OPCODE_TEXT, b"not json"),
        text({"channel": "l2Book", "data": {}}),
        text({"channel": "trades", "data": [{"coin": "BTC"}]}),
        (ABNF.OPCODE_BINARY, b"\x00"),
        (ABNF.OPCODE_PONG, b""),
    ]
    summary, _, rec, _ = run(cfg, script)
    assert summary.trades == 0
    assert summary.frames == 5
    assert rec.kinds("trade") == []


@pytest.mark.parametrize(
    "frame,reason,event",
    [
        ((ABNF.OPCODE_CLOSE, b""), ExitReason.REMOTE_CLOSED, "remote_close"),
        (WebSocketConnectionClosedException("lost"), ExitReason.STREAM_ENDED, "ended"),
        (WebSocketException("bad frame"), ExitReason.TRANSPORT_ERROR, "error"),
        (ConnectionResetError("reset"), ExitReason.TRANSPORT_ERROR, "error"),
    ],
)
def test_every_exit_path_cleans_up_once(cfg, frame, reason, event):
    summary, sock, rec, _ = run(cfg, [CONFIRM, trades(9), frame], duration=60)
    assert summary.exit_reason is reason
    assert rec.kinds(event)
    assert sock.methods() == ["subscribe", "unsubscribe"]
    assert sock.sent[-1] == {"method": "unsubscribe", "subscription": {"type": "trades", "coin": "BTC"}}
    assert sock.closed == 1
    assert len(rec.kinds("summary")) == 1
    assert summary.trades == 1


def test_duration_exit_cleans_up_once(cfg):
    summary, sock, rec, _ = run(cfg, [CONFIRM], duration=2)
    assert summary.exit_reason is ExitReason.DURATION
    assert sock.methods()[-1] == "unsubscribe"
    assert sock.closed == 1
    assert len(rec.kinds("summary")) == 1


def test_cleanup_failures_are_swallowed(cfg):
    summary, sock, rec, _ = run(cfg, [], duration=1, fail_send=True)
    assert summary.exit_reason is ExitReason.DURATION
    assert sock.closed == 1
    assert len(rec.kinds("summary")) == 1


def test_idle_progress_and_quiet_diagnostic(cfg):
    # 150 idle polls = 15 s of silence after confirmation
    summary, _, rec, _ = run(cfg, [CONFIRM], duration=15.05)
    assert len(rec.kinds("quiet")) == 1
    waiting = rec.kinds("waiting")
    assert len(waiting) == 3
    assert waiting[0][1] in (10, 11)


def test_no_progress_before_confirmation(cfg):
    _, _, rec, _ = run(cfg, [], duration=6)
    assert rec.kinds("waiting") == []


def test_any_frame_resets_idle(cfg):
    script = [TIMEOUT] * 99 + [PONG] + [TIMEOUT] * 99
    _, _, rec, _ = run(cfg, script, duration=19.75)
    assert rec.kinds("quiet") == []


def test_ping_after_heartbeat_interval(cfg):
    _, sock, _, _ = run(cfg, [], duration=31)
    assert sock.methods().count("ping") == 1
    assert sock.methods() == ["subscribe", "ping", "unsubscribe"]


def test_connect_failure_propagates(cfg):
    def connect(url):
        raise ConnectionRefusedError("refused")

    with pytest.raises(ConnectionRefusedError):
        StreamSession(cfg, connect=connect).run("BTC", 5)


def test_subscribe_failure_closes_and_propagates(cfg):
    clock = FakeClock()
    sock = FakeSocket(clock)

    def bad_send(payload):
        raise WebSocketConnectionClosedException("closed during handshake")

    sock.send = bad_send
    with pytest.raises(WebSocketConnectionClosedException):
        StreamSession(cfg, connect=lambda url: sock, clock=clock).run("BTC", 5)
    assert sock.closed == 1


def test_classify_frame():
    assert classify_frame('{"channel": "pong"}') == ("pong", {"channel": "pong"})
    assert classify_frame(b'{"channel": "trades", "data": []}')[0] == "trades"
    assert classify_frame("[1, 2]") == ("", None)
    assert classify_frame("{") == ("", None)


def test_trades_before_confirmation_are_kept(cfg):
    summary, _, rec, _ = run(cfg, [trades(1, 2), CONFIRM, trades(3)])
    assert summary.trades == 3
    assert rec.kinds("confirmed") == [("confirmed", "BTC")]
    ordered = [e for e in rec.events if e[0] in ("trade", "confirmed")]
    assert ordered == [("trade", 1), ("trade", 2), ("confirmed", "BTC"), ("trade", 3)]
