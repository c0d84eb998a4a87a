"""Shared fixtures: a fake Binance upstream backed by `httpx.MockTransport`."""

from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from src.core.rate_limiter import SlidingWindowRateLimiter
from src.exchange.binance_client import BinanceClient
from src.frontend.server import create_app

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeBinance:
    """Records every outbound request and answers from a path -> response table."""

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, path: str, payload: Any = None, status_code: int = 200) -> None:
        self.routes[path] = httpx.Response(status_code, json=payload if payload is not None else {})

    def on(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"code": -1, "msg": f"no fake route for {request.url.path}"})
        if callable(route) and not isinstance(route, httpx.Response):
            return route(request)
        return route

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None


@pytest.fixture
def fake_binance() -> FakeBinance:
    return FakeBinance()


@pytest.fixture
def binance_client(fake_binance: FakeBinance) -> BinanceClient:
    return BinanceClient("https://api.binance.test", timeout_seconds=2.0, transport=httpx.MockTransport(fake_binance))


@pytest.fixture
def make_app(binance_client: BinanceClient):
    def _make(config: Optional[Dict[str, Any]] = None, rate_limiter: Optional[SlidingWindowRateLimiter] = None):
        return create_app(
            client=binance_client,
            rate_limiter=rate_limiter,
            config=config or {"rate_limit": {"enabled": False}},
        )

    return _make
