"""
Counter/state store backed by Redis.
"""

from throttlekit.config.logging import get_logger
from throttlekit.exceptions import MalformedStateError, StateNotFoundError
from throttlekit.store.base import CounterStore
from throttlekit.store.redis_client import RedisClient

logger = get_logger(__name__)


def _decode(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisStore(CounterStore):
    """CounterStore implementation on top of RedisClient."""

    def __init__(self, redis_client: RedisClient):
        """
        Initialize Redis store.

        Args:
            redis_client: Redis client instance
        """
        self.redis = redis_client

    async def increment(self, key: str) -> int:
        return await self.redis.incr(key)

    async def increment_preserve_ttl(self, key: str, ttl: float) -> int:
        return await self.redis.incr_with_expiry(key, ttl)

    async def expire(self, key: str, ttl: float) -> None:
        await self.redis.expire(key, ttl)

    async def get_count(self, key: str) -> int:
        """
        Read a counter without incrementing it.

        Args:
            key: Counter key

        Returns:
            Current count, 0 when the key is absent

        Raises:
            MalformedStateError: If the stored value is not an integer
            StoreError: If the Redis call fails
        """
        value = await self.redis.get(key)
        if value is None:
            return 0
        try:
            return int(_decode(value))
        except ValueError as e:
            logger.error("redis_counter_malformed", key=key, error=str(e))
            raise MalformedStateError(key, e) from e

    async def delete(self, key: str) -> None:
        deleted = await self.redis.delete(key)
        if deleted:
            logger.debug("rate_limit_key_deleted", key=key)

    async def set_state(self, key: str, state: str, ttl: float) -> None:
        await self.redis.set(key, state, ttl=ttl)

    async def get_state(self, key: str) -> str:
        """
        Fetch a state blob.

        Raises:
            StateNotFoundError: If the key is absent
            MalformedStateError: If the stored bytes are not valid UTF-8
            StoreError: If the Redis call fails
        """
        value = await self.redis.get(key)
        if value is None:
            raise StateNotFoundError(key)
        try:
            return _decode(value)
        except UnicodeDecodeError as e:
            logger.error("redis_state_malformed", key=key, error=str(e))
            raise MalformedStateError(key, e) from e
