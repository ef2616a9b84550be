"""
Tests for the per-caller cooldown limiter.
"""

import pytest

from stackscout.errors import RateLimitError
from stackscout.rate_limiter import CallerRateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return CallerRateLimiter(cooldown_seconds=5, clock=clock)


class TestCallerRateLimiter:
    """Cooldown, isolation and eviction behavior."""

    @pytest.mark.asyncio
    async def test_first_call_is_allowed(self, limiter):
        await limiter.check("alice")
        assert len(limiter) == 1

    @pytest.mark.asyncio
    async def test_second_call_inside_cooldown_is_rejected(self, limiter, clock):
        await limiter.check("alice")
        clock.now += 1.2
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.check("alice")
        assert exc_info.value.status == 429
        assert exc_info.value.retry_after == 4

    @pytest.mark.asyncio
    async def test_rejection_does_not_extend_cooldown(self, limiter, clock):
        await limiter.check("alice")
        clock.now += 3
        with pytest.raises(RateLimitError):
            await limiter.check("alice")
        clock.now += 2
        await limiter.check("alice")

    @pytest.mark.asyncio
    async def test_callers_are_independent(self, limiter):
        await limiter.check("alice")
        await limiter.check("bob")
        assert len(limiter) == 2

    @pytest.mark.asyncio
    async def test_expired_entries_are_evicted(self, limiter, clock):
        await limiter.check("alice")
        await limiter.check("bob")
        clock.now += 10
        await limiter.check("carol")
        assert len(limiter) == 1

    @pytest.mark.asyncio
    async def test_retry_after_is_at_least_one_second(self, limiter, clock):
        await limiter.check("alice")
        clock.now += 4.99
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.check("alice")
        assert exc_info.value.retry_after == 1

    def test_default_ttl_is_twice_cooldown(self):
        assert CallerRateLimiter(cooldown_seconds=3).ttl_seconds == 6

    @pytest.mark.asyncio
    async def test_reset(self, limiter):
        await limiter.check("alice")
        await limiter.reset()
        await limiter.check("alice")
