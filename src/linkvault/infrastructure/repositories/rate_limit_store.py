"""
Abstract counter store for fixed-window rate limiting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class WindowCount:
    """
    Counter state after an increment.

    Attributes:
        count: Hits recorded in the current window, including this one
        reset_in_ms: Milliseconds until the window resets
    """

    count: int
    reset_in_ms: int


class RateLimitStore(ABC):
    """Atomic increment-with-TTL counters keyed by bucket name."""

    @abstractmethod
    async def hit(self, key: str, window_ms: int) -> WindowCount:
        """
        Increment the counter for ``key``.

        A missing or expired counter starts a new window of ``window_ms``.

        Args:
            key: Bucket key (subject and action)
            window_ms: Window length in milliseconds

        Returns:
            WindowCount after the increment
        """
        pass
