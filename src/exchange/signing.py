"""HMAC-SHA256 request signing for Binance USER_DATA endpoints.

Binance verifies the signature against the query string exactly as it
arrives, so the string we hash is the string we send: parameters stay in
the order the caller inserted them and values are not URL-encoded.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from src.exchange.errors import InvalidInput

SIGNATURE_KEY = "signature"


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return str(int(value.timestamp() * 1000))
    return str(value)


def canonicalize(params: Mapping[str, Any]) -> str:
    """Serialize `params` as `k1=v1&k2=v2...` in insertion order, unencoded."""
    return "&".join(f"{key}={_render(value)}" for key, value in params.items())


def sign(secret: str, params: Mapping[str, Any]) -> str:
    """Return the lowercase hex HMAC-SHA256 of `canonicalize(params)` keyed by `secret`."""
    if not secret:
        raise InvalidInput("API secret is empty.")
    if not params:
        raise InvalidInput("Cannot sign an empty parameter set.")
    if SIGNATURE_KEY in params:
        raise InvalidInput("'signature' is reserved and computed from the other parameters.")
    return hmac.new(
        secret.encode("utf-8"),
        canonicalize(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


@dataclass(frozen=True)
class SignedRequest:
    params: Dict[str, Any]
    signature: str

    def query_string(self) -> str:
        """Exact wire form: the signed canonical string with the signature appended last."""
        return f"{canonicalize(self.params)}&{SIGNATURE_KEY}={self.signature}"


def now_ms() -> int:
    return int(time.time() * 1000)


def build_signed_request(
    secret: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    timestamp_ms: Optional[int] = None,
    recv_window: Optional[int] = None,
) -> SignedRequest:
    """Copy `params`, append `recvWindow` (if set) and `timestamp` last, then sign."""
    query: Dict[str, Any] = dict(params or {})
    # Re-inserting keeps a dict's original position, so drop them first.
    query.pop("recvWindow", None)
    query.pop("timestamp", None)
    if recv_window is not None:
        query["recvWindow"] = int(recv_window)
    query["timestamp"] = int(timestamp_ms) if timestamp_ms is not None else now_ms()
    return SignedRequest(params=query, signature=sign(secret, query))
