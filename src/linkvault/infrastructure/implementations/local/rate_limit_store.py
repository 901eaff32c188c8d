"""
In-process fixed-window counter store.

Counts live in a dict, so limits are per worker process. Use the Redis
store when more than one process serves traffic.
"""

import asyncio
import time
from collections.abc import Callable

from loguru import logger

from linkvault.infrastructure.repositories.rate_limit_store import (
    RateLimitStore,
    WindowCount,
)


# Expired windows are swept at most this often
PRUNE_INTERVAL_MS = 1_000


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class InMemoryRateLimitStore(RateLimitStore):
    """Dict-backed counters with lazy expiry."""

    def __init__(
        self,
        clock: Callable[[], int] = _monotonic_ms,
        prune_interval_ms: int = PRUNE_INTERVAL_MS,
    ):
        """
        Initialize the store.

        Args:
            clock: Millisecond clock, injectable for tests
            prune_interval_ms: Minimum time between sweeps of expired windows
        """
        self._clock = clock
        self._prune_interval_ms = prune_interval_ms
        self._next_prune_at = 0
        self._windows: dict[str, tuple[int, int]] = {}
        self._lock = asyncio.Lock()

        logger.info("Initialized InMemoryRateLimitStore")

    async def hit(self, key: str, window_ms: int) -> WindowCount:
        async with self._lock:
            now = self._clock()
            count, reset_at = self._windows.get(key, (0, 0))
            if now >= reset_at:
                count, reset_at = 0, now + window_ms
            count += 1
            self._windows[key] = (count, reset_at)
            if now >= self._next_prune_at:
                self._prune(now)
                self._next_prune_at = now + self._prune_interval_ms
        return WindowCount(count=count, reset_in_ms=reset_at - now)

    def _prune(self, now: int) -> None:
        """Drop expired windows so the map does not grow without bound."""
        expired = [key for key, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in expired:
            del self._windows[key]
