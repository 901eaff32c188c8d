"""
Abstract store of consumed OAuth state nonces.
"""

from abc import ABC, abstractmethod


class NonceStore(ABC):
    """Records nonces so each OAuth state can be redeemed once."""

    @abstractmethod
    async def consume(self, nonce: str, ttl_seconds: int) -> bool:
        """
        Mark a nonce as used.

        Args:
            nonce: Nonce from a verified state token
            ttl_seconds: How long to remember it (state max age)

        Returns:
            True on first use, False if it was already consumed
        """
        pass
