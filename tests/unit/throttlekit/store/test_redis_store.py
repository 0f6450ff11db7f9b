"""
Unit tests for the Redis-backed store.
"""

from unittest.mock import AsyncMock

import pytest

from throttlekit.exceptions import MalformedStateError, StateNotFoundError
from throttlekit.rate_limiter import TokenBucketRateLimiter
from throttlekit.store.redis_client import RedisClient
from throttlekit.store.redis_store import RedisStore


@pytest.fixture
def redis_client():
    """Mocked Redis client."""
    return AsyncMock(spec=RedisClient)


@pytest.fixture
def redis_store(redis_client):
    """Redis store over the mocked client."""
    return RedisStore(redis_client)


class TestRedisStoreCounters:
    """Tests for counter operations."""

    @pytest.mark.asyncio
    async def test_increment(self, redis_store, redis_client):
        """Test increment delegates to INCR."""
        redis_client.incr.return_value = 2

        assert await redis_store.increment("key") == 2
        redis_client.incr.assert_called_once_with("key")

    @pytest.mark.asyncio
    async def test_increment_preserve_ttl(self, redis_store, redis_client):
        """Test increment_preserve_ttl uses the transactional INCR."""
        redis_client.incr_with_expiry.return_value = 1

        assert await redis_store.increment_preserve_ttl("key", 60) == 1
        redis_client.incr_with_expiry.assert_called_once_with("key", 60)
        redis_client.incr.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_count_missing(self, redis_store, redis_client):
        """Test missing counter reads as zero."""
        redis_client.get.return_value = None

        assert await redis_store.get_count("key") == 0

    @pytest.mark.asyncio
    async def test_get_count_decodes_bytes(self, redis_store, redis_client):
        """Test counters stored as bytes are decoded."""
        redis_client.get.return_value = b"7"

        assert await redis_store.get_count("key") == 7

    @pytest.mark.asyncio
    async def test_get_count_malformed(self, redis_store, redis_client):
        """Test non-integer counter raises MalformedStateError."""
        redis_client.get.return_value = "seven"

        with pytest.raises(MalformedStateError):
            await redis_store.get_count("key")

    @pytest.mark.asyncio
    async def test_expire(self, redis_store, redis_client):
        """Test expire delegates to the client."""
        await redis_store.expire("key", 30)

        redis_client.expire.assert_called_once_with("key", 30)


class TestRedisStoreState:
    """Tests for state blob operations."""

    @pytest.mark.asyncio
    async def test_set_state(self, redis_store, redis_client):
        """Test state is written with its TTL."""
        await redis_store.set_state("bucket", "{}", 60)

        redis_client.set.assert_called_once_with("bucket", "{}", ttl=60)

    @pytest.mark.asyncio
    async def test_get_state(self, redis_store, redis_client):
        """Test state is read back."""
        redis_client.get.return_value = '{"water": 1}'

        assert await redis_store.get_state("bucket") == '{"water": 1}'

    @pytest.mark.asyncio
    async def test_get_state_missing(self, redis_store, redis_client):
        """Test missing state raises StateNotFoundError."""
        redis_client.get.return_value = None

        with pytest.raises(StateNotFoundError):
            await redis_store.get_state("bucket")

    @pytest.mark.asyncio
    async def test_delete(self, redis_store, redis_client):
        """Test delete."""
        redis_client.delete.return_value = 1

        await redis_store.delete("bucket")

        redis_client.delete.assert_called_once_with("bucket")

    @pytest.mark.asyncio
    async def test_get_state_invalid_utf8(self, redis_store, redis_client):
        """Test undecodable bytes raise MalformedStateError."""
        redis_client.get.return_value = b"\xff\xfe"

        with pytest.raises(MalformedStateError):
            await redis_store.get_state("bucket")

    @pytest.mark.asyncio
    async def test_bucket_limiter_reports_invalid_utf8(self, redis_store, redis_client):
        """Test a bucket engine surfaces undecodable state as MalformedStateError."""
        redis_client.get.return_value = b"\xff\xfe"
        limiter = TokenBucketRateLimiter(redis_store, rate=1.0, burst=5, state_expiry=60)

        with pytest.raises(MalformedStateError):
            await limiter.allow("ip:1.2.3.4")

        redis_client.set.assert_not_called()
