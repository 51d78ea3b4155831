# src/hltrader/cli/render.py
from __future__ import annotations

import sys
from datetime import datetime, timezone

from src.hltrader.core.models.market import BalanceResponse, SpotResponse, StatusResponse, TradeEvent
from src.hltrader.core.models.order import Filled, OrderIntent, OrderOutcome, Rejected, Resting
from src.hltrader.core.stream.state import StreamListener, StreamSummary

WIDE = 63
NARROW = 38

TOP_MARKETS = 10
TOP_TOKENS = 5
TOP_PAIRS = 10


# ------------------------------------------------------------------
# box helpers
# ------------------------------------------------------------------

def _top(w: int) -> str:
    return "╔" + "═" * w + "╗"


def _mid(w: int) -> str:
    return "╠" + "═" * w + "╣"


def _bot(w: int) -> str:
    return "╚" + "═" * w + "╝"


def _row(text: str, w: int) -> str:
    return "║" + text[:w].ljust(w) + "║"


def _title(text: str, w: int) -> str:
    return "║" + text.center(w) + "║"


def network_name(api_url: str) -> str:
    return "TESTNET" if "testnet" in api_url else "MAINNET"


# ------------------------------------------------------------------
# info tables
# ------------------------------------------------------------------

def print_status(status: StatusResponse, *, network: str = "TESTNET") -> None:
    w = WIDE
    print()
    print(_top(w))
    print(_title(f"HYPERLIQUID {network} STATUS", w))
    print(_mid(w))
    print(_row(f" Available Markets: {status.total_markets}", w))
    print(_mid(w))
    print(_row(f"{'SYMBOL':<10} {'MARK PRICE':<12} {'24H VOLUME':<12} {'FUNDING %':<10} {'MAX LEV':<7} {'OPEN INT':<8}", w))
    print(_mid(w))
    for m in status.markets[:TOP_MARKETS]:
        print(_row(
            f"{m.symbol:<10} ${m.mark_price:<11.4f} ${m.volume_24h:<11.0f} "
            f"{m.funding_rate * 100:<10.6f} {str(m.max_leverage) + 'x':<7} ${m.open_interest:.0f}",
            w,
        ))
    print(_bot(w))
    if len(status.markets) > TOP_MARKETS:
        print(f"... and {len(status.markets) - TOP_MARKETS} more markets")


def print_balances(b: BalanceResponse) -> None:
    w = WIDE
    print()
    print(_top(w))
    print(_title("ACCOUNT SUMMARY", w))
    print(_mid(w))
    print(_row(f" Wallet: {b.wallet_address}", w))
    print(_row(f" Account Value: ${b.account_value:.2f}", w))
    print(_row(f" Withdrawable: ${b.withdrawable:.2f}", w))
    print(_row(f" Cross Margin Used: ${b.cross_margin_used:.2f}", w))
    print(_mid(w))

    if not b.positions:
        print(_title("No open positions", w))
        print(_bot(w))
        return

    print(_title("POSITIONS", w))
    print(_mid(w))
    print(_row(f"{'ASSET':<7} {'SIZE':<14} {'ENTRY':<11} {'LEV':<4} {'UNREALIZED':<13} {'VALUE':<9}", w))
    print(_mid(w))
    for p in b.positions:
        size = f"LONG {p.size:.4f}" if p.size > 0 else f"SHORT {abs(p.size):.4f}"
        pnl = f"{p.unrealized_pnl:+.2f}"
        print(_row(
            f"{p.symbol:<7} {size:<14} ${p.entry_price:<10.4f} {str(p.leverage) + 'x':<4} "
            f"${pnl:<12} ${p.position_value:.2f}",
            w,
        ))
    print(_bot(w))


def _short_token_id(token_id: str) -> str:
    if len(token_id) > 20:
        return f"{token_id[:8]}...{token_id[-6:]}"
    return token_id


def print_spot(spot: SpotResponse) -> None:
    w = WIDE
    print()
    print(_top(w))
    print(_title("SPOT MARKETS", w))
    print(_mid(w))
    print(_row(f" Available Tokens: {len(spot.tokens)}", w))
    print(_row(f" Trading Pairs: {len(spot.pairs)}", w))
    print(_mid(w))
    print(_title("TOKENS", w))
    print(_mid(w))
    print(_row(f"{'NAME':<12} {'DECIMALS':<8} {'TOKEN ID':<20}", w))
    print(_mid(w))
    for t in spot.tokens[:TOP_TOKENS]:
        print(_row(f"{t.name:<12} {t.decimals:<8} {_short_token_id(t.token_id):<20}", w))
    print(_mid(w))
    print(_title("TRADING PAIRS", w))
    print(_mid(w))
    print(_row(f"{'PAIR':<15} {'MARK PRICE':<12} {'MID PRICE':<12} {'24H VOLUME':<12}", w))
    print(_mid(w))
    for p in spot.pairs[:TOP_PAIRS]:
        print(_row(f"{p.name:<15} ${p.mark_price:<11.6f} ${p.mid_price:<11.6f} ${p.volume_24h:.0f}", w))
    print(_bot(w))
    if len(spot.pairs) > TOP_PAIRS:
        print(f"... and {len(spot.pairs) - TOP_PAIRS} more pairs")


# ------------------------------------------------------------------
# orders
# ------------------------------------------------------------------

def print_order_outcome(intent: OrderIntent, outcome: OrderOutcome) -> None:
    w = NARROW
    kind = intent.order_type.value
    r = outcome.result

    print()
    print(_top(w))
    print(_title("ORDER CONFIRMATION", w))
    print(_mid(w))
    print(_row(f" Type: {kind} {intent.side.value}", w))
    print(_row(f" Symbol: {intent.symbol}", w))
    print(_row(f" Quantity: {intent.qty:.4f}", w))
    if intent.limit_price is not None:
        print(_row(f" Limit: {intent.limit_price}", w))
    if intent.leverage is not None:
        print(_row(f" Leverage: {intent.leverage}x", w))
    print(_row(f" Status: {outcome.status.value}", w))

    if isinstance(r, Filled):
        print(_row(f" Order ID: {r.order_id}", w))
        if r.filled_qty > 0:
            print(_row(f" Filled: {r.filled_qty:.4f} @ ${(r.avg_price or 0.0):.4f}", w))
        elif intent.limit_price is None:
            print(_row(" Market order awaiting fill", w))
        else:
            print(_row(" Limit order resting on book", w))
    elif isinstance(r, Resting):
        print(_row(f" Order resting - ID: {r.order_id}", w))
    elif isinstance(r, Rejected):
        print(_row(f" Error: {r.reason}", w))

    print(_row(f" Timestamp: {outcome.timestamp}", w))
    print(_bot(w))
    if isinstance(r, Rejected):
        # full reason; the box truncates
        print(f"Order rejected: {r.reason}")


# ------------------------------------------------------------------
# stream
# ------------------------------------------------------------------

RULE = "═" * 47


class ConsoleStreamPrinter(StreamListener):
    def __init__(self, *, network: str = "TESTNET"):
        self.network = network

    def on_subscribed(self, symbol: str, duration_s: float) -> None:
        print(f"Subscribed to trades for {symbol}")
        print()
        print(RULE)
        print(f"  HYPERLIQUID {self.network} TRADE STREAM")
        print(RULE)
        print(f"Symbol: {symbol}")
        print("Type: TRADES")
        print(f"Duration: {int(duration_s)}s")
        print(f"Started: {datetime.now(timezone.utc):%H:%M:%S} UTC")
        print(RULE)
        print(f"{'TIME':<12} {'SIDE':<6} {'PRICE':<12} {'SIZE':<12} {'TRADE_ID':<10} {'HASH':<8}")
        print("─" * 69)

    def on_confirmed(self, symbol: str) -> None:
        print(f"Subscription confirmed for {symbol}")

    def on_trade(self, t: TradeEvent) -> None:
        ts = datetime.fromtimestamp(t.time_ms / 1000.0, tz=timezone.utc)
        print(
            f"{ts:%H:%M:%S}{'':<4} {t.side.value:<6} ${t.price:<11.4f} "
            f"{t.size:<12.4f} {t.trade_id:<10} {t.short_hash:<8}"
        )

    def on_waiting(self, remaining_s: int) -> None:
        print(f"\rWaiting for trades... ({remaining_s}s remaining)", end="", flush=True)

    def on_quiet(self, symbol: str) -> None:
        print("\nNo trades received for 10+ seconds. Market might be quiet or connection issue.")

    def on_duration_reached(self, duration_s: float) -> None:
        print(f"\nStream duration of {int(duration_s)}s reached")

    def on_remote_close(self) -> None:
        print("WebSocket connection closed by server")

    def on_stream_ended(self) -> None:
        print("WebSocket connection ended")

    def on_transport_error(self, err: Exception) -> None:
        print(f"WebSocket error: {err}", file=sys.stderr)

    def on_summary(self, s: StreamSummary) -> None:
        print()
        print(RULE)
        print("Stream completed!")
        print(f"Duration: {int(s.elapsed_s)}s")
        print(f"Total WebSocket messages: {s.frames}")
        print(f"Total trades received: {s.trades}")
        if s.trades == 0:
            print("No trades received - this could mean:")
            print(f"   • Market is quiet for {s.symbol} right now")
            print("   • Symbol might not exist (try: ETH, BTC, SOL, etc.)")
            print("   • Try a longer duration (--duration 60)")
