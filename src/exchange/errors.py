"""Shared relay error types.

Every error knows the HTTP status it maps to and how to render itself as a
JSON body, so handlers can convert them at a single boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence


class RelayError(Exception):
    """Base class for errors surfaced to relay clients."""

    status_code: int = 500
    label: str = "Internal error"

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.label, "message": str(self)}


@dataclass
class InvalidInput(RelayError):
    """Raised when the signature builder is given unusable input."""

    reason: str

    status_code = 500
    label = "Signing failed"

    def __str__(self) -> str:
        return str(self.reason or "invalid input")


@dataclass
class BadRequest(RelayError):
    """Raised when inputs (params or credential headers) are missing or unusable.

    Attributes
    ----------
    missing:
        Names of the missing inputs, in the order they were checked.
    invalid:
        Names of parameters whose values cannot be sent verbatim in a query string.
    message:
        Optional override for the human-readable message.
    """

    missing: Sequence[str] = field(default_factory=tuple)
    invalid: Sequence[str] = field(default_factory=tuple)
    message: Optional[str] = None

    status_code = 400
    label = "Bad request"

    def __str__(self) -> str:
        if self.message:
            return self.message
        if self.missing:
            return "Missing required parameter(s): " + ", ".join(self.missing)
        return "Invalid characters in parameter(s): " + ", ".join(self.invalid)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.label, "message": str(self), "missing": list(self.missing)}
        if self.invalid:
            body["invalid"] = list(self.invalid)
        return body


@dataclass
class UpstreamRejected(RelayError):
    """Raised when Binance answers with a non-2xx status."""

    upstream_status: int
    message: Optional[str] = None
    code: Optional[int] = None
    payload: Any = None

    label = "Upstream request failed"

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return int(self.upstream_status)

    def __str__(self) -> str:
        base = f"upstream returned {self.upstream_status}"
        if self.message:
            return f"{base}: {self.message}"
        return base

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.label, "status": int(self.upstream_status)}
        if self.message:
            body["message"] = self.message
        if self.code is not None:
            body["code"] = self.code
        return body

    @classmethod
    def from_payload(cls, status: int, payload: Any) -> "UpstreamRejected":
        """Build from a decoded Binance error body (`{"code": -1121, "msg": "..."}`)."""
        message: Optional[str] = None
        code: Optional[int] = None
        if isinstance(payload, dict):
            raw_msg = payload.get("msg") or payload.get("message")
            message = str(raw_msg) if raw_msg else None
            try:
                code = int(payload["code"]) if payload.get("code") is not None else None
            except (TypeError, ValueError):
                code = None
        elif isinstance(payload, str) and payload.strip():
            message = payload.strip()
        return cls(upstream_status=int(status), message=message, code=code, payload=payload)


@dataclass
class TransportFailure(RelayError):
    """Raised when no response was received (DNS, connect, read, timeout)."""

    message: str
    timed_out: bool = False

    status_code = 500
    label = "Upstream unreachable"

    def __str__(self) -> str:
        return str(self.message or "transport failure")


@dataclass
class RateLimited(RelayError):
    retry_after: float = 0.0

    status_code = 429
    label = "Too many requests"

    def __str__(self) -> str:
        return "Rate limit exceeded; retry later."
