"""
Async Redis client for the rate limit store.

Wraps a pooled redis.asyncio client and exposes only the commands the
counter/state store needs. Every redis-py failure is re-raised as a
StoreError: transport problems and timeouts as StoreUnavailableError, all
other failures as plain StoreError.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from throttlekit.config.logging import get_logger
from throttlekit.exceptions import StoreConnectionError, StoreError, StoreUnavailableError

logger = get_logger(__name__)


def redact_url(url: str) -> str:
    """Strip the password from a Redis URL before it is logged."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.hostname or ""
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    if parts.username:
        netloc = f"{parts.username}:***@{netloc}"
    else:
        netloc = f":***@{netloc}"
    return urlunsplit(parts._replace(netloc=netloc))


def _to_millis(ttl: float) -> int:
    return max(1, int(ttl * 1000))


def _translate_error(operation: str, error: Exception) -> StoreError:
    if isinstance(error, (RedisConnectionError, RedisTimeoutError, TimeoutError)):
        return StoreUnavailableError(f"Redis {operation} failed: {error}", operation=operation)
    return StoreError(f"Redis {operation} failed: {error}")


@contextmanager
def _store_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Log and translate redis-py exceptions raised inside the block.

    Args:
        operation: Redis operation name used in the log event and error
        **context: Extra log fields (key, ttl)

    Raises:
        StoreError: For any failure other than an existing StoreError
    """
    try:
        yield
    except StoreError:
        raise
    except Exception as e:
        logger.error(f"redis_{operation}_failed", error=str(e), **context)
        raise _translate_error(operation, e) from e


class RedisClient:
    """Redis client with async connection pool."""

    def __init__(
        self,
        url: str,
        max_connections: int = 50,
        decode_responses: bool = True,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
    ):
        """
        Initialize Redis client.

        Args:
            url: Redis connection URL
            max_connections: Maximum number of connections
            decode_responses: Decode responses to strings
            socket_timeout: Per-command socket timeout in seconds
            socket_connect_timeout: Socket connect timeout in seconds
        """
        self.url = url
        self.max_connections = max_connections
        self.decode_responses = decode_responses
        self.socket_timeout = socket_timeout
        self.socket_connect_timeout = socket_connect_timeout

        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """
        Open the connection pool and verify the server answers.

        Raises:
            StoreConnectionError: If connection fails
        """
        try:
            self._pool = ConnectionPool.from_url(
                self.url,
                max_connections=self.max_connections,
                decode_responses=self.decode_responses,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_connect_timeout,
            )
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e), url=redact_url(self.url))
            raise StoreConnectionError(f"Failed to connect to Redis: {e}") from e

        logger.info(
            "redis_connected",
            url=redact_url(self.url),
            max_connections=self.max_connections,
        )

    async def disconnect(self) -> None:
        """Close the client and its pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

        if self._pool:
            await self._pool.aclose()
            self._pool = None

        logger.info("redis_disconnected")

    def get_client(self) -> Redis:
        """
        Get the underlying redis.asyncio client.

        Raises:
            StoreUnavailableError: If connect() has not been called
        """
        if not self._client:
            raise StoreUnavailableError(
                "Redis client not connected. Call connect() first.", operation="get_client"
            )
        return self._client

    async def ping(self) -> bool:
        """Check the server answers PING."""
        with _store_errors("ping"):
            return bool(await self.get_client().ping())

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Set a key, with a TTL in seconds when given (sent as PX milliseconds).
        """
        with _store_errors("set", key=key):
            client = self.get_client()
            if ttl:
                return bool(await client.set(key, value, px=_to_millis(ttl)))
            return bool(await client.set(key, value))

    async def get(self, key: str) -> Any | None:
        with _store_errors("get", key=key):
            return await self.get_client().get(key)

    async def delete(self, key: str) -> int:
        with _store_errors("delete", key=key):
            return int(await self.get_client().delete(key))

    async def expire(self, key: str, ttl: float) -> bool:
        """
        Set or overwrite the TTL of a key.

        Returns:
            False if the key does not exist
        """
        with _store_errors("expire", key=key, ttl=ttl):
            return bool(await self.get_client().pexpire(key, _to_millis(ttl)))

    async def incr(self, key: str) -> int:
        with _store_errors("incr", key=key):
            return int(await self.get_client().incr(key))

    async def incr_with_expiry(self, key: str, ttl: float) -> int:
        """
        Increment a key and set its expiration only if it has none yet.

        Runs INCR and PEXPIRE NX inside one MULTI/EXEC block, so a new
        counter always gets a TTL and an existing TTL is never renewed.
        Requires Redis 7.0 or later.

        Args:
            key: Redis key
            ttl: Time to live in seconds for a new key

        Returns:
            Value after the increment

        Raises:
            StoreError: If the transaction fails
        """
        with _store_errors("incr_with_expiry", key=key, ttl=ttl):
            async with self.get_client().pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.pexpire(key, _to_millis(ttl), nx=True)
                results = await pipe.execute()
            return int(results[0])
