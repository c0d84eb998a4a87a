"""Declarative descriptors for every route the relay exposes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Tuple

from src.relay import reshape

Reshaper = Callable[[Any, int], Any]


@dataclass(frozen=True)
class EndpointSpec:
    """One relayed route.

    Attributes
    ----------
    name:
        Route name (also used in logs).
    paths:
        Inbound paths; path parameters are merged with the query string.
    upstream_path:
        Binance path the request is forwarded to.
    required / optional:
        Parameters forwarded in this order, required first. Optional ones are
        only sent when the caller supplied them.
    signed:
        Whether credential headers are required and the request is signed.
    reshape:
        Maps `(upstream_body, upstream_status)` to the response body.
    missing_message:
        Overrides the 400 message when a required parameter is absent.
    """

    name: str
    paths: Tuple[str, ...]
    upstream_path: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    signed: bool = False
    reshape: Reshaper = reshape.passthrough
    missing_message: str = ""
    summary: str = ""


ENDPOINTS: Tuple[EndpointSpec, ...] = (
    EndpointSpec(
        name="ping",
        paths=("/ping",),
        upstream_path="/api/v3/ping",
        reshape=reshape.ping_status,
        summary="Check connectivity to Binance.",
    ),
    EndpointSpec(
        name="price",
        paths=("/price/{symbol}", "/price"),
        upstream_path="/api/v3/ticker/price",
        required=("symbol",),
        reshape=reshape.single_price,
        summary="Latest price for one symbol.",
    ),
    EndpointSpec(
        name="prices",
        paths=("/prices",),
        upstream_path="/api/v3/ticker/price",
        reshape=reshape.price_map,
        summary="Latest prices for every symbol, keyed by symbol.",
    ),
    EndpointSpec(
        name="exchange_info",
        paths=("/exchangeInfo",),
        upstream_path="/api/v3/exchangeInfo",
        optional=("symbol",),
        summary="Exchange trading rules and symbol metadata.",
    ),
    EndpointSpec(
        name="klines",
        paths=("/klines",),
        upstream_path="/api/v3/klines",
        required=("symbol", "interval", "limit"),
        optional=("startTime", "endTime"),
        summary="Candlestick bars.",
    ),
    EndpointSpec(
        name="ticker_24hr",
        paths=("/ticker/24hr",),
        upstream_path="/api/v3/ticker/24hr",
        optional=("symbol",),
        summary="24 hour rolling window statistics.",
    ),
    EndpointSpec(
        name="balances",
        paths=("/balances",),
        upstream_path="/api/v3/account",
        signed=True,
        reshape=reshape.filter_balances,
        summary="Non-zero account balances.",
    ),
    EndpointSpec(
        name="account",
        paths=("/account",),
        upstream_path="/api/v3/account",
        signed=True,
        summary="Raw account information.",
    ),
    EndpointSpec(
        name="open_orders",
        paths=("/openOrders",),
        upstream_path="/api/v3/openOrders",
        optional=("symbol",),
        signed=True,
        summary="Open orders, optionally for one symbol.",
    ),
    EndpointSpec(
        name="my_trades",
        paths=("/myTrades",),
        upstream_path="/api/v3/myTrades",
        required=("symbol",),
        optional=("limit", "fromId", "startTime", "endTime"),
        signed=True,
        summary="Account trade history for one symbol.",
    ),
    EndpointSpec(
        name="market_data",
        paths=("/api/market-data/{symbol}", "/api/market-data"),
        upstream_path="/api/v3/ticker/price",
        required=("symbol",),
        missing_message="Symbol is required",
        summary="Raw ticker price for one symbol.",
    ),
)


def get_endpoint(name: str) -> EndpointSpec:
    for spec in ENDPOINTS:
        if spec.name == name:
            return spec
    raise KeyError(name)
