"""
Redis store of consumed OAuth state nonces.
"""

import redis.asyncio as aioredis
from loguru import logger

from linkvault.infrastructure.repositories.nonce_store import NonceStore

KEY_PREFIX = "oauth_nonce:"


class RedisNonceStore(NonceStore):
    """SET NX EX makes first use win across all workers."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

        logger.info("Initialized RedisNonceStore")

    @classmethod
    def from_url(cls, url: str) -> "RedisNonceStore":
        """Build a store with its own connection pool."""
        return cls(aioredis.from_url(url, decode_responses=True, max_connections=20))

    async def consume(self, nonce: str, ttl_seconds: int) -> bool:
        created = await self._client.set(
            f"{KEY_PREFIX}{nonce}", "1", nx=True, ex=ttl_seconds
        )
        return bool(created)

    async def aclose(self) -> None:
        """Release the connection pool."""
        await self._client.aclose()
