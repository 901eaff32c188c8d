"""
Unit tests for consumed-nonce stores.
"""

import fakeredis
import pytest

from linkvault.infrastructure.implementations.local import InMemoryNonceStore
from linkvault.infrastructure.implementations.redis import RedisNonceStore


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_memory_store_first_use_wins():
    """Test a nonce can be consumed once."""
    store = InMemoryNonceStore()

    assert await store.consume("nonce-1", 600) is True
    assert await store.consume("nonce-1", 600) is False
    assert await store.consume("nonce-2", 600) is True


@pytest.mark.asyncio
async def test_memory_store_forgets_after_ttl():
    """Test nonces are dropped once their state could no longer verify."""
    clock = FakeClock()
    store = InMemoryNonceStore(clock=clock)
    await store.consume("nonce-1", 600)
    clock.now += 601

    assert await store.consume("nonce-1", 600) is True


@pytest.mark.asyncio
async def test_redis_store_first_use_wins():
    """Test SET NX rejects a second use."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    store = RedisNonceStore(client)

    assert await store.consume("nonce-1", 600) is True
    assert await store.consume("nonce-1", 600) is False
    assert 0 < await client.ttl("oauth_nonce:nonce-1") <= 600
