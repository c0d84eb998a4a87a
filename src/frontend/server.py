"""HTTP server for the Binance relay: app factory, middleware, and service routes."""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rest_api import attach_api_routes
from src.core.rate_limiter import RateLimiter, SlidingWindowRateLimiter
from src.exchange.binance_client import BinanceClient
from src.exchange.errors import RateLimited
from src.relay.handler import API_KEY_HEADER, API_SECRET_HEADER, RelayHandler

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


def create_app(
    *,
    client: Optional[BinanceClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
    config: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """Return a FastAPI app relaying Binance routes behind CORS, header and quota middleware."""
    config = config or {}
    general_cfg = config.get("general", {}) or {}
    frontend_cfg = config.get("frontend", {}) or {}
    exchange_cfg = config.get("exchange", {}) or {}
    relay_cfg = config.get("relay", {}) or {}

    upstream = client or build_binance_client(exchange_cfg)
    limiter = rate_limiter if rate_limiter is not None else build_rate_limiter(config.get("rate_limit", {}) or {})
    recv_window = exchange_cfg.get("recv_window")
    handler = RelayHandler(
        upstream,
        recv_window=int(recv_window) if recv_window else None,
        api_key_header=str(relay_cfg.get("api_key_header") or API_KEY_HEADER),
        api_secret_header=str(relay_cfg.get("api_secret_header") or API_SECRET_HEADER),
    )
    service_name = str(general_cfg.get("service") or "binance-relay")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logging.info("Relaying Binance requests to %s", upstream.base_url)
        yield
        await upstream.aclose()

    app = FastAPI(
        title="Binance Relay",
        description="Relays Binance public and account endpoints with a simplified JSON contract.",
        version="0.1.0",
        lifespan=lifespan,
    )

    attach_api_routes(app, handler=handler)

    @app.get("/")
    async def root() -> Dict[str, Any]:
        """Service banner."""
        return {"status": "online", "service": service_name}

    # Starlette wraps later middleware around earlier ones: the rate limit is
    # innermost so 429 responses still carry security and CORS headers.
    if limiter is not None:

        @app.middleware("http")
        async def enforce_rate_limit(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
            key = _client_address(request)
            if not limiter.consume(key):
                error = RateLimited(retry_after=limiter.retry_after(key))
                logging.warning("Rate limit exceeded for %s on %s", key, request.url.path)
                return JSONResponse(
                    error.to_body(),
                    status_code=error.status_code,
                    headers={"Retry-After": str(max(1, math.ceil(error.retry_after)))},
                )
            return await call_next(request)

    hsts = bool(frontend_cfg.get("hsts", False))

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    origins = frontend_cfg.get("cors_origins") or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    return app


def build_binance_client(exchange_cfg: Dict[str, Any]) -> BinanceClient:
    use_sandbox = bool(exchange_cfg.get("use_sandbox", False))
    base_url = BinanceClient.TESTNET_URL if use_sandbox else str(exchange_cfg.get("base_url") or BinanceClient.BASE_URL)
    return BinanceClient(
        base_url=base_url,
        timeout_seconds=float(exchange_cfg.get("timeout_seconds", 10.0) or 10.0),
    )


def build_rate_limiter(rate_cfg: Dict[str, Any]) -> Optional[SlidingWindowRateLimiter]:
    if not bool(rate_cfg.get("enabled", True)):
        return None
    return SlidingWindowRateLimiter(
        max_requests=int(rate_cfg.get("max_requests", 60) or 60),
        window_seconds=int(rate_cfg.get("window_seconds", 60) or 60),
    )


def _client_address(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
