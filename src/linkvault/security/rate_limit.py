"""
Fixed-window rate limiting on top of a counter store.
"""

import math
from dataclasses import dataclass

from linkvault.infrastructure.repositories import RateLimitStore

DEFAULT_MAX = 10
DEFAULT_WINDOW_MS = 15 * 60 * 1000


@dataclass
class RateLimitDecision:
    """
    Result of one rate limit check.

    Attributes:
        allowed: Whether the call is admitted
        remaining: Calls left in the current window
        reset_in: Whole seconds until the window resets (at least 1)
    """

    allowed: bool
    remaining: int
    reset_in: int


class RateLimiter:
    """
    Admits at most ``max_attempts`` calls per (subject, action) per window.

    The window starts at the first call and resets at its boundary; it
    does not slide.
    """

    def __init__(self, store: RateLimitStore):
        self.store = store

    @staticmethod
    def bucket(subject: str, action: str) -> str:
        """Counter key for a (subject, action) pair."""
        return f"{subject}:{action}"

    async def check(
        self,
        subject: str,
        action: str,
        max_attempts: int = DEFAULT_MAX,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> RateLimitDecision:
        """
        Count one call and decide whether it is admitted.

        Args:
            subject: Authenticated subject id
            action: Rate limit bucket name
            max_attempts: Calls admitted per window
            window_ms: Window length in milliseconds

        Returns:
            RateLimitDecision
        """
        window = await self.store.hit(self.bucket(subject, action), window_ms)
        reset_in = max(1, math.ceil(window.reset_in_ms / 1000))
        return RateLimitDecision(
            allowed=window.count <= max_attempts,
            remaining=max(0, max_attempts - window.count),
            reset_in=reset_in,
        )
