"""
In-process store of consumed OAuth state nonces.
"""

import asyncio
import time
from collections.abc import Callable

from loguru import logger

from linkvault.infrastructure.repositories.nonce_store import NonceStore


class InMemoryNonceStore(NonceStore):
    """Remembers nonces until their state token could no longer verify."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._seen: dict[str, float] = {}
        self._lock = asyncio.Lock()

        logger.info("Initialized InMemoryNonceStore")

    async def consume(self, nonce: str, ttl_seconds: int) -> bool:
        async with self._lock:
            now = self._clock()
            for key in [k for k, expiry in self._seen.items() if expiry <= now]:
                del self._seen[key]

            if nonce in self._seen:
                return False
            self._seen[nonce] = now + ttl_seconds
        return True
