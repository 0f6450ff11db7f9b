"""
Unit tests for the sliding window rate limiter.
"""

import pytest

from throttlekit.exceptions import InvalidIdentifierError
from throttlekit.rate_limiter import SlidingWindowRateLimiter
from throttlekit.rate_limiter.keys import RateLimitKeys


@pytest.fixture
def limiter(store, clock):
    """Ten requests per minute."""
    return SlidingWindowRateLimiter(store, limit=10, window=60, clock=clock)


class TestSlidingWindowRateLimiter:
    """Tests for sliding window rate limiting."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, limiter):
        """Test `limit` requests are permitted in a fresh window."""
        results = [await limiter.allow("ip:10.0.0.1") for _ in range(11)]

        assert results == [True] * 10 + [False]

    @pytest.mark.asyncio
    async def test_denied_requests_are_not_counted(self, limiter, store):
        """Test only permitted requests increment the counter."""
        for _ in range(15):
            await limiter.allow("ip:10.0.0.1")

        key = RateLimitKeys.sliding_window("ip:10.0.0.1", 20)
        assert await store.get_count(key) == 10

    @pytest.mark.asyncio
    async def test_previous_window_is_weighted(self, limiter, clock):
        """Test half of the previous window still counts halfway through."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")

        clock.advance(90)

        results = [await limiter.allow("ip:10.0.0.1") for _ in range(6)]
        assert results == [True] * 5 + [False]

    @pytest.mark.asyncio
    async def test_previous_window_forgotten_after_two_windows(self, limiter, clock):
        """Test counts older than the previous window are ignored."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")

        clock.advance(120)

        results = [await limiter.allow("ip:10.0.0.1") for _ in range(10)]
        assert all(results)

    @pytest.mark.asyncio
    async def test_info(self, limiter, clock):
        """Test info uses the weighted count and the current window end."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")

        clock.advance(90)
        await limiter.allow("ip:10.0.0.1")
        info = await limiter.info("ip:10.0.0.1")

        assert info.limit == 10
        assert info.remaining == 4
        assert info.reset == 1320

    @pytest.mark.asyncio
    async def test_counter_ttl_covers_next_window(self, limiter, store):
        """Test the current counter lives for two windows."""
        await limiter.allow("ip:10.0.0.1")

        assert store.ttl(RateLimitKeys.sliding_window("ip:10.0.0.1", 20)) == 120

    @pytest.mark.asyncio
    async def test_reset(self, limiter, clock):
        """Test reset clears both the current and previous windows."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")
        clock.advance(60)
        await limiter.allow("ip:10.0.0.1")

        await limiter.reset("ip:10.0.0.1")

        assert (await limiter.info("ip:10.0.0.1")).remaining == 10

    @pytest.mark.asyncio
    async def test_empty_identifier(self, limiter):
        """Test empty identifier is rejected."""
        with pytest.raises(InvalidIdentifierError):
            await limiter.allow("")

    @pytest.mark.asyncio
    async def test_window_boundary(self, limiter, clock):
        """Test a full previous window denies at offset 0 and permits at offset 0.5."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")

        clock.advance(60)
        assert await limiter.allow("ip:10.0.0.1") is False

        clock.advance(30)
        assert await limiter.allow("ip:10.0.0.1") is True

    @pytest.mark.asyncio
    async def test_info_is_idempotent(self, limiter, clock):
        """Test repeated info calls return the same result."""
        for _ in range(4):
            await limiter.allow("ip:10.0.0.1")
        clock.advance(75)

        first = await limiter.info("ip:10.0.0.1")
        second = await limiter.info("ip:10.0.0.1")

        assert first == second

    @pytest.mark.asyncio
    async def test_partition_isolation(self, limiter):
        """Test exhausting one identifier leaves another untouched."""
        for _ in range(10):
            await limiter.allow("ip:10.0.0.1")

        other = await limiter.info("ip:10.0.0.2")

        assert other.remaining == 10
        assert await limiter.allow("ip:10.0.0.1") is False
        assert await limiter.allow("ip:10.0.0.2") is True
