"""Reshape Binance payloads into the relay's simplified response contract."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List


def passthrough(body: Any, status: int = 200) -> Any:
    return body


def ping_status(body: Any, status: int = 200) -> Dict[str, Any]:
    return {"status": "ok", "upstream_status": int(status)}


def single_price(body: Any, status: int = 200) -> Dict[str, Any]:
    if isinstance(body, dict):
        return {"price": body.get("price")}
    return {"price": None}


def price_map(body: Any, status: int = 200) -> Dict[str, str]:
    """Flatten `[{"symbol": ..., "price": ...}, ...]` into `{symbol: price}`."""
    rows = [body] if isinstance(body, dict) else list(body or [])
    prices: Dict[str, str] = {}
    for row in rows:
        if not isinstance(row, dict) or not row.get("symbol"):
            continue
        prices[str(row["symbol"])] = row.get("price")
    return prices


def filter_balances(body: Any, status: int = 200) -> List[Dict[str, Any]]:
    """Keep non-empty balances from an `/api/v3/account` payload.

    Amounts stay as the strings Binance sent; only the comparison is numeric.
    """
    balances = body.get("balances") if isinstance(body, dict) else body
    if not isinstance(balances, list):
        return []

    def _d(value: Any) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return Decimal(0)
        return Decimal(0) if amount.is_nan() else amount

    result: List[Dict[str, Any]] = []
    for entry in balances:
        if not isinstance(entry, dict):
            continue
        free = entry.get("free", "0")
        locked = entry.get("locked", "0")
        if _d(free) > 0 or _d(locked) > 0:
            result.append({"asset": entry.get("asset"), "available": free, "onOrder": locked})
    return result
