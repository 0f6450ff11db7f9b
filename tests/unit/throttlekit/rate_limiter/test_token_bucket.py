"""
Unit tests for the token bucket rate limiter.
"""

import pytest

from throttlekit.exceptions import ConfigurationError, MalformedStateError, StateNotFoundError
from throttlekit.rate_limiter import TokenBucketRateLimiter
from throttlekit.rate_limiter.keys import RateLimitKeys
from throttlekit.rate_limiter.token_bucket import TokenBucketState

IDENTIFIER = "api:key-1"
KEY = RateLimitKeys.token_bucket(IDENTIFIER)


@pytest.fixture
def limiter(store, clock):
    """Bucket of 5 tokens refilling at 1 token per second."""
    return TokenBucketRateLimiter(store, rate=1.0, burst=5, state_expiry=60, clock=clock)


class TestTokenBucketRateLimiter:
    """Tests for token bucket rate limiting."""

    @pytest.mark.asyncio
    async def test_new_bucket_is_full(self, limiter, clock):
        """Test a fresh identifier starts with a full bucket."""
        info = await limiter.info(IDENTIFIER)

        assert info.limit == 5
        assert info.remaining == 5
        assert info.reset == int(clock.now)

    @pytest.mark.asyncio
    async def test_burst_then_deny(self, limiter):
        """Test the burst is allowed at once and the next request denied."""
        results = [await limiter.allow(IDENTIFIER) for _ in range(6)]

        assert results == [True] * 5 + [False]

    @pytest.mark.asyncio
    async def test_info_when_empty(self, limiter, clock):
        """Test reset reports the time until the bucket is full again."""
        for _ in range(5):
            await limiter.allow(IDENTIFIER)

        info = await limiter.info(IDENTIFIER)

        assert info.remaining == 0
        assert info.reset == int(clock.now) + 5

    @pytest.mark.asyncio
    async def test_refill(self, limiter, clock):
        """Test tokens refill at the configured rate."""
        for _ in range(5):
            await limiter.allow(IDENTIFIER)

        clock.advance(2)

        results = [await limiter.allow(IDENTIFIER) for _ in range(3)]
        assert results == [True, True, False]

    @pytest.mark.asyncio
    async def test_refill_capped_at_burst(self, limiter, clock):
        """Test an idle bucket never exceeds its capacity."""
        await limiter.allow(IDENTIFIER)
        clock.advance(30)

        assert (await limiter.info(IDENTIFIER)).remaining == 5

    @pytest.mark.asyncio
    async def test_denial_does_not_persist(self, limiter, store):
        """Test a rejected request leaves the stored state unchanged."""
        for _ in range(5):
            await limiter.allow(IDENTIFIER)
        before = await store.get_state(KEY)

        assert await limiter.allow(IDENTIFIER) is False

        assert await store.get_state(KEY) == before

    @pytest.mark.asyncio
    async def test_fractional_refill_accumulates_across_denials(self, store, clock):
        """Test partial tokens are not lost when requests are denied."""
        limiter = TokenBucketRateLimiter(store, rate=0.5, burst=1, state_expiry=60, clock=clock)

        assert await limiter.allow(IDENTIFIER) is True
        assert await limiter.allow(IDENTIFIER) is False
        clock.advance(1)
        assert await limiter.allow(IDENTIFIER) is False
        clock.advance(1)
        assert await limiter.allow(IDENTIFIER) is True

    @pytest.mark.asyncio
    async def test_info_does_not_persist(self, limiter, store):
        """Test info never writes state."""
        await limiter.info(IDENTIFIER)

        with pytest.raises(StateNotFoundError):
            await store.get_state(KEY)

    @pytest.mark.asyncio
    async def test_state_ttl(self, limiter, store):
        """Test bucket state expires after the idle expiry."""
        await limiter.allow(IDENTIFIER)

        assert store.ttl(KEY) == 60

    @pytest.mark.asyncio
    async def test_malformed_state_raises(self, limiter, store):
        """Test undecodable state is reported and left in place."""
        await store.set_state(KEY, "not json", 60)

        with pytest.raises(MalformedStateError):
            await limiter.allow(IDENTIFIER)

        assert await store.get_state(KEY) == "not json"

    @pytest.mark.asyncio
    async def test_future_timestamp_is_clamped(self, limiter, store, clock):
        """Test a last_refill ahead of the clock adds no tokens."""
        state = TokenBucketState(tokens=0.0, last_refill=clock.now + 100)
        await store.set_state(KEY, state.model_dump_json(), 60)

        assert await limiter.allow(IDENTIFIER) is False
        assert (await limiter.info(IDENTIFIER)).remaining == 0

    @pytest.mark.asyncio
    async def test_reset(self, limiter):
        """Test reset refills the bucket."""
        for _ in range(5):
            await limiter.allow(IDENTIFIER)

        await limiter.reset(IDENTIFIER)

        assert (await limiter.info(IDENTIFIER)).remaining == 5

    def test_invalid_configuration(self, store):
        """Test non-positive rate or burst fails fast."""
        with pytest.raises(ConfigurationError):
            TokenBucketRateLimiter(store, rate=0, burst=5, state_expiry=60)

        with pytest.raises(ConfigurationError):
            TokenBucketRateLimiter(store, rate=1.0, burst=0, state_expiry=60)

        with pytest.raises(ConfigurationError):
            TokenBucketRateLimiter(store, rate=1.0, burst=5, state_expiry=0)


class TestTokenBucketScenarios:
    """End-to-end token bucket scenarios."""

    @pytest.mark.asyncio
    async def test_full_refill_after_burst(self, limiter, clock):
        """Test 5 permits, a denial, then 5 permits after 5 seconds."""
        results = [await limiter.allow(IDENTIFIER) for _ in range(6)]
        assert results == [True] * 5 + [False]

        clock.advance(5)

        results = [await limiter.allow(IDENTIFIER) for _ in range(6)]
        assert results == [True] * 5 + [False]

    @pytest.mark.asyncio
    async def test_info_is_idempotent(self, limiter, clock):
        """Test repeated info calls return the same result."""
        await limiter.allow(IDENTIFIER)
        await limiter.allow(IDENTIFIER)

        assert await limiter.info(IDENTIFIER) == await limiter.info(IDENTIFIER)

    @pytest.mark.asyncio
    async def test_partition_isolation(self, limiter):
        """Test identifiers never share a bucket."""
        for _ in range(5):
            await limiter.allow("api:first")

        assert await limiter.allow("api:first") is False
        assert (await limiter.info("api:second")).remaining == 5
        assert await limiter.allow("api:second") is True
