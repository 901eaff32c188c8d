"""
Redis fixed-window counter store.
"""

import redis.asyncio as aioredis
from loguru import logger

from linkvault.infrastructure.repositories.rate_limit_store import (
    RateLimitStore,
    WindowCount,
)

KEY_PREFIX = "ratelimit:"

# Increment and set the TTL only for a new key, then report the remaining TTL
INCREMENT_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisRateLimitStore(RateLimitStore):
    """Counters shared by every worker pointing at the same Redis."""

    def __init__(self, client: aioredis.Redis):
        """
        Initialize the store.

        Args:
            client: Async Redis client
        """
        self._client = client
        self._script = client.register_script(INCREMENT_SCRIPT)

        logger.info("Initialized RedisRateLimitStore")

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimitStore":
        """Build a store with its own connection pool."""
        return cls(aioredis.from_url(url, decode_responses=True, max_connections=20))

    async def hit(self, key: str, window_ms: int) -> WindowCount:
        count, ttl = await self._script(keys=[f"{KEY_PREFIX}{key}"], args=[window_ms])
        return WindowCount(count=int(count), reset_in_ms=int(ttl))

    async def aclose(self) -> None:
        """Release the connection pool."""
        await self._client.aclose()
