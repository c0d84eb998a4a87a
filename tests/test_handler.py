"""Tests for the shared relay flow (validation, signing, dispatch, mapping)."""

import asyncio
from urllib.parse import parse_qsl

import httpx

from src.exchange.signing import build_signed_request, sign
from src.relay.endpoints import EndpointSpec, get_endpoint
from src.relay.handler import RelayHandler

CREDS = {"X-API-KEY": "my-key", "X-API-SECRET": "my-secret"}


def _run(handler, name, params=None, headers=None):
    return asyncio.run(handler.handle(get_endpoint(name), params or {}, headers or {}))


def test_missing_symbol_makes_no_outbound_call(fake_binance, binance_client):
    result = _run(RelayHandler(binance_client), "price")
    assert result.status_code == 400
    assert "symbol" in result.body["message"]
    assert fake_binance.calls == 0


def test_missing_credentials_make_no_outbound_call(fake_binance, binance_client):
    for name in ("balances", "account", "open_orders", "my_trades"):
        result = _run(RelayHandler(binance_client), name, {"symbol": "BTCUSDT"}, {"X-API-KEY": "k"})
        assert result.status_code == 400
        assert "X-API-SECRET" in result.body["message"]
    blank = _run(RelayHandler(binance_client), "account", headers={"X-API-KEY": "  ", "X-API-SECRET": ""})
    assert blank.status_code == 400
    assert blank.body["missing"] == ["X-API-KEY", "X-API-SECRET"]
    assert fake_binance.calls == 0


def test_signed_request_sends_key_header_and_exact_signed_query(fake_binance, binance_client):
    fake_binance.reply("/api/v3/myTrades", [{"id": 1}])
    handler = RelayHandler(binance_client, clock=lambda: 1700000000000)
    result = _run(
        handler,
        "my_trades",
        {"symbol": "btcusdt", "endTime": "20", "limit": "10", "ignored": "x"},
        CREDS,
    )

    assert result.status_code == 200
    assert result.body == [{"id": 1}]
    request = fake_binance.last
    assert request.headers["X-MBX-APIKEY"] == "my-key"
    assert "my-secret" not in str(request.url)
    assert all("my-secret" not in value for value in request.headers.values())

    canonical = "symbol=BTCUSDT&limit=10&endTime=20&timestamp=1700000000000"
    expected_sig = sign("my-secret", dict(parse_qsl(canonical)))
    assert request.url.query.decode() == f"{canonical}&signature={expected_sig}"


def test_recv_window_is_signed_before_timestamp(fake_binance, binance_client):
    fake_binance.reply("/api/v3/account", {"balances": []})
    handler = RelayHandler(binance_client, recv_window=5000, clock=lambda: 7)
    _run(handler, "account", headers=CREDS)
    pairs = parse_qsl(fake_binance.last.url.query.decode())
    assert [k for k, _ in pairs] == ["recvWindow", "timestamp", "signature"]


def test_upstream_error_keeps_status_and_message(fake_binance, binance_client):
    fake_binance.reply("/api/v3/account", {"code": -1003, "msg": "rate limited by exchange"}, status_code=418)
    result = _run(RelayHandler(binance_client), "balances", headers=CREDS)
    assert result.status_code == 418
    assert result.body["status"] == 418
    assert result.body["message"] == "rate limited by exchange"
    assert result.body["code"] == -1003


def test_upstream_error_without_json_body(fake_binance, binance_client):
    fake_binance.on("/api/v3/ping", lambda request: httpx.Response(503, text="Service Unavailable"))
    result = _run(RelayHandler(binance_client), "ping")
    assert result.status_code == 503
    assert result.body["message"] == "Service Unavailable"


def test_transport_failure_maps_to_500(fake_binance, binance_client):
    def _boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_binance.on("/api/v3/ticker/price", _boom)
    result = _run(RelayHandler(binance_client), "price", {"symbol": "BTCUSDT"})
    assert result.status_code == 500
    assert "connection refused" in result.body["message"]
    assert fake_binance.calls == 1


def test_timeout_maps_to_500(fake_binance, binance_client):
    def _slow(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    fake_binance.on("/api/v3/ticker/24hr", _slow)
    result = _run(RelayHandler(binance_client), "ticker_24hr")
    assert result.status_code == 500
    assert "timed out" in result.body["message"]


def test_reshape_failure_is_converted_to_json_500(fake_binance, binance_client):
    fake_binance.reply("/api/v3/ticker/price", {"price": "1"})

    def _broken(body, status):
        raise KeyError("price")

    handler = RelayHandler(binance_client)
    broken_spec = EndpointSpec(name="broken", paths=("/broken",), upstream_path="/api/v3/ticker/price", reshape=_broken)
    result = asyncio.run(handler.handle(broken_spec, {}, {}))
    assert result.status_code == 500
    assert result.body == {"error": "Internal error", "message": "Failed to fetch data from Binance"}


def test_unsafe_values_are_rejected_before_signing(fake_binance, binance_client):
    handler = RelayHandler(binance_client, clock=lambda: 1)
    cases = [
        ({"symbol": "btc#x"}, "symbol"),
        ({"symbol": "btc usdt"}, "symbol"),
        ({"symbol": "BTCUSDT", "limit": "5&signature=forged"}, "limit"),
        ({"symbol": "BTCUSDT", "fromId": "1=2"}, "fromId"),
        ({"symbol": "BTCUSDT", "startTime": "1%20"}, "startTime"),
        ({"symbol": "BTCUSDT", "endTime": "1+2"}, "endTime"),
        ({"symbol": "bтcusdt"}, "symbol"),
    ]
    for params, field in cases:
        result = _run(handler, "my_trades", params, CREDS)
        assert result.status_code == 400
        assert result.body["invalid"] == [field]
        assert field in result.body["message"]
    assert fake_binance.calls == 0


def test_wire_query_equals_signed_query_string(fake_binance, binance_client):
    fake_binance.reply("/api/v3/myTrades", [])
    handler = RelayHandler(binance_client, recv_window=5000, clock=lambda: 1700000000000)
    _run(handler, "my_trades", {"symbol": "eth-btc", "limit": "5", "fromId": "12.5"}, CREDS)

    signed = build_signed_request(
        "my-secret",
        {"symbol": "ETH-BTC", "limit": "5", "fromId": "12.5"},
        timestamp_ms=1700000000000,
        recv_window=5000,
    )
    assert fake_binance.calls == 1
    assert fake_binance.last.url.query.decode() == signed.query_string()


def test_unsigned_routes_reject_unsafe_values(fake_binance, binance_client):
    result = _run(RelayHandler(binance_client), "klines", {"symbol": "BTCUSDT", "interval": "1h#", "limit": "1"})
    assert result.status_code == 400
    assert result.body["invalid"] == ["interval"]
    assert fake_binance.calls == 0
