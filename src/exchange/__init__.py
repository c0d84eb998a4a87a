"""Exchange abstractions (Binance REST client, request signing, relay errors)."""

from src.exchange.binance_client import BinanceClient
from src.exchange.errors import BadRequest, InvalidInput, RateLimited, RelayError, TransportFailure, UpstreamRejected
from src.exchange.signing import SignedRequest, build_signed_request, canonicalize, sign

__all__ = [
    "BadRequest",
    "BinanceClient",
    "InvalidInput",
    "RateLimited",
    "RelayError",
    "SignedRequest",
    "TransportFailure",
    "UpstreamRejected",
    "build_signed_request",
    "canonicalize",
    "sign",
]
