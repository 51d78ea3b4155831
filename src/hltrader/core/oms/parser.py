# src/hltrader/core/oms/parser.py
from __future__ import annotations

from typing import Any

from src.hltrader.core.errors import ExchangeError
from src.hltrader.core.models.order import Filled, OrderResult, Rejected, Resting


UNKNOWN_STATUS = "Unknown status"
NO_RESPONSE_DATA = "No response data"


# ------------------------------------------------------------
# helpers
# ------------------------------------------------------------
def _f(v: Any, default: float = 0.0) -> float:
    try:
        if v is None or v == "":
            return default
        return float(v)
    except (TypeError, ValueError):
        return default


def _oid(v: Any) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


def _statuses(raw: Any) -> list | None:
    """
    Exchange envelope:
      {"status": "ok", "response": {"type": "order", "data": {"statuses": [...]}}}
      {"status": "err", "response": "<message>"}
    Returns the statuses list, or None when the ok-envelope carries no data.
    """
    resp = raw.get("response")
    if not isinstance(resp, dict):
        return None
    data = resp.get("data")
    if not isinstance(data, dict):
        return None
    statuses = data.get("statuses")
    if not isinstance(statuses, list) or not statuses:
        return None
    return statuses


def _err_message(raw: dict) -> str:
    resp = raw.get("response")
    if isinstance(resp, str) and resp:
        return resp
    return str(resp or "exchange returned err")


# ------------------------------------------------------------
# per-variant normalizers
# ------------------------------------------------------------
def _from_filled(body: dict) -> Filled:
    return Filled(
        order_id=_oid(body.get("oid")),
        filled_qty=_f(body.get("totalSz")),
        avg_price=_f(body.get("avgPx")),
    )


def _from_resting(body: dict) -> Resting:
    return Resting(order_id=_oid(body.get("oid")))


def _from_status(status: Any) -> OrderResult:
    if status == "success":
        return Filled(order_id=0, filled_qty=0.0, avg_price=None)

    if isinstance(status, dict):
        if isinstance(status.get("filled"), dict):
            return _from_filled(status["filled"])
        if isinstance(status.get("resting"), dict):
            return _from_resting(status["resting"])
        if "error" in status:
            return Rejected(reason=str(status.get("error")))

    # waitingForFill / waitingForTrigger / anything new
    return Rejected(reason=UNKNOWN_STATUS)


# ------------------------------------------------------------
# main parsers
# ------------------------------------------------------------
def parse_order_response(raw: Any) -> OrderResult:
    """
    Collapse an order / market_open / market_close response into one result.

    Only the first status is looked at (one order per request).
    A missing response (e.g. market_close with no open position) -> Rejected.
    """
    if not isinstance(raw, dict):
        return Rejected(reason=NO_RESPONSE_DATA)

    if str(raw.get("status") or "").lower() != "ok":
        return Rejected(reason=_err_message(raw))

    statuses = _statuses(raw)
    if statuses is None:
        return Rejected(reason=NO_RESPONSE_DATA)

    return _from_status(statuses[0])


def parse_leverage_response(raw: Any) -> None:
    if not isinstance(raw, dict):
        raise ExchangeError("Failed to set leverage: no response data")
    if str(raw.get("status") or "").lower() != "ok":
        raise ExchangeError(f"Failed to set leverage: {_err_message(raw)}")


def parse_cancel_response(raw: Any) -> None:
    if not isinstance(raw, dict):
        raise ExchangeError("Cancel failed: no response data")
    if str(raw.get("status") or "").lower() != "ok":
        raise ExchangeError(f"Cancel failed: {_err_message(raw)}")

    for st in _statuses(raw) or []:
        if isinstance(st, dict) and "error" in st:
            raise ExchangeError(f"Cancel failed: {st.get('error')}")
