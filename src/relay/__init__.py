"""Relay layer: endpoint descriptors, the shared request flow, and response reshaping."""

from src.relay.endpoints import ENDPOINTS, EndpointSpec
from src.relay.handler import RelayHandler, RelayResult

__all__ = [
    "ENDPOINTS",
    "EndpointSpec",
    "RelayHandler",
    "RelayResult",
]
