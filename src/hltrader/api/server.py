# src/hltrader/api/server.py
"""
Read-only HTTP API over InfoService.

    GET /health     liveness
    GET /status     perpetual markets
    GET /balances   account summary + positions
    GET /spot       spot tokens + pairs

Upstream (exchange) failures map to 502 with the message in `detail`.
"""
from __future__ import annotations

import logging
import time

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from src.hltrader.config.loader import Config
from src.hltrader.exchanges.hyperliquid.info import InfoService

log = logging.getLogger("hltrader.api")

VERSION = "0.1.0"


def create_app(info: InfoService) -> FastAPI:
    app = FastAPI(title="hltrader", version=VERSION, docs_url="/docs")

    # read-only surface: any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "healthy", "timestamp": int(time.time()), "version": VERSION}

    @app.get("/status")
    def status():
        try:
            return info.get_status().to_dict()
        except Exception as e:
            log.exception("GET /status failed")
            raise HTTPException(status_code=502, detail=f"Failed to get status: {e}")

    @app.get("/balances")
    def balances():
        try:
            return info.get_balances().to_dict()
        except Exception as e:
            log.exception("GET /balances failed")
            raise HTTPException(status_code=502, detail=f"Failed to get balances: {e}")

    @app.get("/spot")
    def spot():
        try:
            return info.get_spot_markets().to_dict()
        except Exception as e:
            log.exception("GET /spot failed")
            raise HTTPException(status_code=502, detail=f"Failed to get spot markets: {e}")

    return app


def serve(cfg: Config, *, port: int = 8080, host: str = "0.0.0.0") -> None:
    app = create_app(InfoService(cfg))

    print(f"Hyperliquid Server running on http://localhost:{port}")
    print("Available endpoints:")
    print("   GET  /health       - Health check")
    print("   GET  /status       - Exchange status")
    print("   GET  /balances     - Account balances")
    print("   GET  /spot         - Spot markets")
    print()
    print("Press Ctrl+C to stop the server")

    uvicorn.run(app, host=host, port=int(port), log_level="warning")
