# src/hltrader/exchanges/hyperliquid/rest.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from src.hltrader.config.loader import DEFAULT_API_URL

log = logging.getLogger("hyperliquid.rest")


class HyperliquidInfoREST:
    """
    Hyperliquid public info client (POST /info), with retry/backoff for 429/5xx
    and network errors. Nothing here is signed.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 1.5,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.max_retries = int(max_retries)
        self.backoff_base = float(backoff_base)
        self._sleep = sleep

        self.sess = session or requests.Session()
        self.sess.headers.update({"Content-Type": "application/json"})

    # ---------------------------------------------------------------------
    # CORE REQUEST (WITH BACKOFF)
    # ---------------------------------------------------------------------

    def _backoff(self, attempt: int) -> None:
        self._sleep(self.backoff_base * attempt)

    def _info(self, body: dict[str, Any]) -> Any:
        url = f"{self.base_url}/info"
        kind = body.get("type")
        last_err: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                r = self.sess.post(url, json=body, timeout=self.timeout)
            except requests.RequestException as e:
                last_err = e
                log.warning(
                    "info %s network error, retry %d/%d | %r",
                    kind, attempt, self.max_retries, e,
                )
                self._backoff(attempt)
                continue

            # --- RATE LIMIT / TEMP SERVER ERRORS ---
            if r.status_code == 429 or r.status_code >= 500:
                last_err = RuntimeError(f"HTTP {r.status_code}")
                log.warning(
                    "info %s HTTP %d, retry %d/%d",
                    kind, r.status_code, attempt, self.max_retries,
                )
                self._backoff(attempt)
                continue

            # --- OTHER ERRORS ---
            if r.status_code >= 400:
                raise RuntimeError(f"Hyperliquid HTTP {r.status_code} info {kind}: {r.text[:500]}")

            # --- OK ---
            try:
                return r.json()
            except ValueError as e:
                raise RuntimeError(f"Hyperliquid info {kind}: response is not JSON: {r.text[:200]}") from e

        raise RuntimeError(
            f"Hyperliquid info {kind} failed after {self.max_retries} retries | last_err={last_err!r}"
        )

    # ---------------------------------------------------------------------
    # API METHODS
    # ---------------------------------------------------------------------

    def meta_and_asset_ctxs(self) -> list:
        # [ {"universe": [...]}, [ctx, ...] ]
        return self._info({"type": "metaAndAssetCtxs"})

    def clearinghouse_state(self, user: str) -> dict:
        return self._info({"type": "clearinghouseState", "user": user})

    def spot_meta_and_asset_ctxs(self) -> list:
        # [ {"tokens": [...], "universe": [...]}, [ctx, ...] ]
        return self._info({"type": "spotMetaAndAssetCtxs"})

    def all_mids(self) -> dict[str, str]:
        return self._info({"type": "allMids"})
