"""Redis-backed counters and nonce store for multi-process deployments."""

from linkvault.infrastructure.implementations.redis.nonce_store import (
    RedisNonceStore,
)
from linkvault.infrastructure.implementations.redis.rate_limit_store import (
    RedisRateLimitStore,
)

__all__ = ["RedisNonceStore", "RedisRateLimitStore"]
