"""
Unit tests for fixed-window rate limiting.
"""

from unittest.mock import patch

import fakeredis
import pytest

from linkvault.infrastructure.implementations.local import InMemoryRateLimitStore
from linkvault.infrastructure.implementations.redis import RedisRateLimitStore
from linkvault.security.rate_limit import RateLimiter


class FakeClock:
    """Millisecond clock moved by hand."""

    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(InMemoryRateLimitStore(clock=clock))


@pytest.mark.asyncio
async def test_admits_max_attempts_then_rejects(limiter):
    """Test exactly max calls are admitted in one window."""
    decisions = [await limiter.check("user-1", "api-key-save", 10, 60_000) for _ in range(11)]

    assert all(d.allowed for d in decisions[:10])
    assert decisions[9].remaining == 0
    assert decisions[10].allowed is False
    assert decisions[10].reset_in > 0


@pytest.mark.asyncio
async def test_reset_in_rounds_up_to_seconds(limiter, clock):
    """Test reset_in is whole seconds, at least 1."""
    await limiter.check("user-1", "action", 1, 60_000)
    clock.now += 59_500

    decision = await limiter.check("user-1", "action", 1, 60_000)

    assert decision.allowed is False
    assert decision.reset_in == 1


@pytest.mark.asyncio
async def test_window_resets_at_boundary(limiter, clock):
    """Test counting starts over once the window has elapsed."""
    for _ in range(3):
        await limiter.check("user-1", "action", 2, 1_000)
    clock.now += 1_000

    decision = await limiter.check("user-1", "action", 2, 1_000)

    assert decision.allowed is True
    assert decision.remaining == 1


@pytest.mark.asyncio
async def test_window_does_not_slide(limiter, clock):
    """Test calls late in the window do not extend it."""
    await limiter.check("user-1", "action", 1, 1_000)
    clock.now += 900
    rejected = await limiter.check("user-1", "action", 1, 1_000)
    clock.now += 100

    admitted = await limiter.check("user-1", "action", 1, 1_000)

    assert rejected.allowed is False
    assert admitted.allowed is True


@pytest.mark.asyncio
async def test_buckets_are_per_subject_and_action(limiter):
    """Test counters do not leak across subjects or actions."""
    await limiter.check("user-1", "save", 1, 60_000)

    assert (await limiter.check("user-2", "save", 1, 60_000)).allowed is True
    assert (await limiter.check("user-1", "delete", 1, 60_000)).allowed is True
    assert (await limiter.check("user-1", "save", 1, 60_000)).allowed is False


def test_bucket_key():
    """Test bucket keys combine subject and action."""
    assert RateLimiter.bucket("user-1", "api-key-save") == "user-1:api-key-save"


@pytest.mark.asyncio
async def test_memory_store_prunes_expired_windows(clock):
    """Test expired counters are dropped."""
    store = InMemoryRateLimitStore(clock=clock)
    await store.hit("a", 1_000)
    clock.now += 2_000

    await store.hit("b", 1_000)

    assert set(store._windows) == {"b"}


@pytest.mark.asyncio
async def test_memory_store_sweeps_at_most_once_per_interval(clock):
    """Test hits inside the prune interval skip the sweep."""
    store = InMemoryRateLimitStore(clock=clock, prune_interval_ms=1_000)

    with patch.object(store, "_prune", wraps=store._prune) as prune:
        for i in range(50):
            await store.hit(f"user-{i}", 60_000)
        assert prune.call_count == 1

        clock.now += 1_000
        await store.hit("user-0", 60_000)
        assert prune.call_count == 2


@pytest.mark.asyncio
async def test_memory_store_keeps_expired_window_until_next_sweep(clock):
    store = InMemoryRateLimitStore(clock=clock, prune_interval_ms=5_000)
    await store.hit("a", 100)
    clock.now += 200

    await store.hit("b", 100)

    assert set(store._windows) == {"a", "b"}
    # An expired window still restarts on its next hit
    result = await store.hit("a", 100)
    assert result.count == 1


@pytest.fixture
def redis_store():
    """Redis store backed by an isolated fakeredis server."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return RedisRateLimitStore(client)


@pytest.mark.asyncio
async def test_redis_store_counts_and_sets_ttl(redis_store):
    """Test the Lua script increments and reports the remaining TTL."""
    first = await redis_store.hit("user-1:save", 60_000)
    second = await redis_store.hit("user-1:save", 60_000)

    assert first.count == 1
    assert second.count == 2
    assert 0 < second.reset_in_ms <= 60_000


@pytest.mark.asyncio
async def test_redis_store_keys_are_prefixed(redis_store):
    """Test counters live under the ratelimit: prefix."""
    await redis_store.hit("user-1:save", 60_000)

    assert await redis_store._client.get("ratelimit:user-1:save") == "1"


@pytest.mark.asyncio
async def test_redis_limiter_rejects_over_max(redis_store):
    """Test the limiter behaves the same over Redis."""
    limiter = RateLimiter(redis_store)
    decisions = [await limiter.check("user-1", "save", 3, 60_000) for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert decisions[-1].reset_in > 0
