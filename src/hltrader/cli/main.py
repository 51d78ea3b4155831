# src/hltrader/cli/main.py
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from src.hltrader.cli import render
from src.hltrader.config.loader import Config, load_config
from src.hltrader.core.models.order import MAX_SLIPPAGE, OrderIntent
from src.hltrader.exchanges.hyperliquid.info import InfoService
from src.hltrader.exchanges.hyperliquid.ws import StreamSession
from src.hltrader.exchanges.registry import build_gateway

log = logging.getLogger("hltrader.cli")

DEFAULT_PORT = 8080
DEFAULT_STREAM_SECONDS = 30


# =============================================================================
# logging
# =============================================================================

def setup_logging(verbose: bool = False) -> None:
    level_name = "INFO" if verbose else (os.getenv("HL_LOG_LEVEL") or "WARNING").strip().upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


# =============================================================================
# args
# =============================================================================

def _add_order_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("symbol")
    p.add_argument("qty", type=float)
    p.add_argument("--limit", type=float, default=None, help="Limit price (if not specified, places market order)")
    p.add_argument("--leverage", type=int, default=None, help="Leverage multiplier")
    p.add_argument("--reduce-only", action="store_true", help="Reduce only order")
    p.add_argument("--tif", default="Gtc", choices=["Gtc", "Ioc", "Alo"], help="Time in force")
    p.add_argument("--slippage", type=float, default=None, help="Slippage tolerance for market orders (0.01 = 1%%)")
    p.add_argument("--tick-size", type=float, default=None, help="Tick size for limit price rounding (e.g. 0.01, 0.1, 1.0)")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="hl", description="Hyperliquid Testnet Trader")
    ap.add_argument("--server", action="store_true", help="Run the read-only HTTP API")
    ap.add_argument("--port", type=int, default=DEFAULT_PORT)
    ap.add_argument("-v", "--verbose", action="store_true", help="INFO logging")

    sub = ap.add_subparsers(dest="command")
    sub.add_parser("status", help="Perpetual markets overview")
    sub.add_parser("balances", help="Account value and open positions")
    sub.add_parser("spot", help="Spot tokens and pairs")

    st = sub.add_parser("stream", help="Live trades for one symbol")
    st.add_argument("symbol")
    st.add_argument("-d", "--duration", type=int, default=DEFAULT_STREAM_SECONDS, help="Duration in seconds")

    _add_order_args(sub.add_parser("buy", help="Place a buy order"))
    _add_order_args(sub.add_parser("sell", help="Place a sell order"))

    cn = sub.add_parser("cancel", help="Cancel a resting order")
    cn.add_argument("symbol")
    cn.add_argument("order_id", type=int)
    return ap


def _check_order_args(args: argparse.Namespace) -> Optional[str]:
    """Flag checks that must fail before any config or network work."""
    if args.limit is None and args.slippage is not None:
        if not 0.0 <= args.slippage <= MAX_SLIPPAGE:
            return "Slippage must be between 0% and 10% (0.0 to 0.1)"
    if args.tick_size is not None and args.tick_size <= 0:
        return "Tick size must be greater than 0"
    return None


# =============================================================================
# commands
# =============================================================================

def cmd_status(cfg: Config) -> int:
    print("Fetching exchange status...")
    status = InfoService(cfg).get_status()
    render.print_status(status, network=render.network_name(cfg.api_url))
    print("Status retrieved successfully!")
    return 0


def cmd_balances(cfg: Config) -> int:
    print("Fetching account balances...")
    render.print_balances(InfoService(cfg).get_balances())
    print("Balances retrieved successfully!")
    return 0


def cmd_spot(cfg: Config) -> int:
    print("Fetching spot markets...")
    render.print_spot(InfoService(cfg).get_spot_markets())
    print("Spot markets retrieved successfully!")
    return 0


def cmd_stream(cfg: Config, args: argparse.Namespace) -> int:
    print(f"Starting trade stream for {args.symbol} ({args.duration}s)")
    print(f"Connecting to WebSocket: {cfg.ws_url}")
    printer = render.ConsoleStreamPrinter(network=render.network_name(cfg.api_url))
    StreamSession(cfg, listener=printer).run(args.symbol, args.duration)
    return 0


def cmd_order(cfg: Config, args: argparse.Namespace) -> int:
    side = "BUY" if args.command == "buy" else "SELL"
    intent = OrderIntent(
        symbol=args.symbol,
        side=side,
        qty=args.qty,
        limit_price=args.limit,
        leverage=args.leverage,
        reduce_only=bool(args.reduce_only),
        tif=args.tif,
        # slippage only shapes market orders
        slippage=args.slippage if args.limit is None else None,
        tick_size=args.tick_size,
    )
    if intent.tick_size is not None:
        print(f"Using custom tick size: {intent.tick_size}")
    print(f"Placing {intent.order_type.value} {side} order for {intent.qty} {intent.symbol}")

    outcome = build_gateway(cfg).place(intent)
    render.print_order_outcome(intent, outcome)
    if outcome.ok:
        print("Order submitted successfully!")
    return 0


def cmd_cancel(cfg: Config, args: argparse.Namespace) -> int:
    print(f"Cancelling order {args.order_id} for {args.symbol}")
    build_gateway(cfg).cancel(args.symbol, args.order_id)
    print(f"Order {args.order_id} cancelled successfully")
    return 0


def cmd_server(cfg: Config, port: int) -> int:
    from src.hltrader.api.server import serve

    serve(cfg, port=port)
    return 0


# =============================================================================
# entry
# =============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    load_dotenv(override=False)
    setup_logging(args.verbose)

    if not args.server and not args.command:
        print("Please specify a command or use --server", file=sys.stderr)
        ap.print_help(sys.stderr)
        return 1

    if args.command in ("buy", "sell"):
        problem = _check_order_args(args)
        if problem:
            print(f"Error: {problem}", file=sys.stderr)
            return 1

    try:
        cfg = load_config(env_file=None)

        if args.server:
            return cmd_server(cfg, args.port)
        if args.command == "status":
            return cmd_status(cfg)
        if args.command == "balances":
            return cmd_balances(cfg)
        if args.command == "spot":
            return cmd_spot(cfg)
        if args.command == "stream":
            return cmd_stream(cfg, args)
        if args.command in ("buy", "sell"):
            return cmd_order(cfg, args)
        if args.command == "cancel":
            return cmd_cancel(cfg, args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        log.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    ap.print_usage(sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
