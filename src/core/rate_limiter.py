"""Per-client request quotas for the relay, backed by the `limits` engine behind slowapi."""

from __future__ import annotations

import time
from typing import Optional, Protocol

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import MovingWindowRateLimiter


class RateLimiter(Protocol):
    """Capability consumed by the HTTP layer; swap for a shared store when running multiple processes."""

    def consume(self, key: str) -> bool:
        ...

    def retry_after(self, key: str) -> float:
        ...


class SlidingWindowRateLimiter:
    """Allows `max_requests` per rolling `window_seconds` per key.

    Pass a `limits` storage (e.g. Redis) to share quotas between processes;
    the default keeps counters in memory.
    """

    NAMESPACE = "relay"

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: int = 60,
        *,
        storage: Optional[Storage] = None,
    ) -> None:
        if int(max_requests) <= 0:
            raise ValueError("max_requests must be positive")
        if int(window_seconds) <= 0:
            raise ValueError("window_seconds must be a positive number of seconds")
        self.max_requests = int(max_requests)
        self.window_seconds = int(window_seconds)
        self._item = RateLimitItemPerSecond(self.max_requests, self.window_seconds)
        self._strategy = MovingWindowRateLimiter(storage or MemoryStorage())

    def consume(self, key: str) -> bool:
        """Record one hit for `key` and return False if it is over quota."""
        return self._strategy.hit(self._item, self.NAMESPACE, key)

    def retry_after(self, key: str) -> float:
        """Seconds until `key` regains one slot (0 when it already has one)."""
        reset_time, remaining = self._strategy.get_window_stats(self._item, self.NAMESPACE, key)
        if remaining > 0:
            return 0.0
        return max(0.0, float(reset_time) - time.time())
