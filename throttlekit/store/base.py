"""
Counter/state store contract consumed by the rate limiters.

Windowed strategies need an atomic increment; bucket strategies read and
write opaque state blobs and tolerate the read-modify-write race.
"""

from abc import ABC, abstractmethod


class CounterStore(ABC):
    """Key-value store holding rate limit counters and bucket state."""

    @abstractmethod
    async def increment(self, key: str) -> int:
        """
        Atomically increment a counter, creating it at 1 when absent.

        Args:
            key: Counter key

        Returns:
            Counter value after the increment

        Raises:
            StoreError: If the operation fails
        """

    @abstractmethod
    async def expire(self, key: str, ttl: float) -> None:
        """
        Set or overwrite the expiration of a key.

        Args:
            key: Store key
            ttl: Time to live in seconds

        Raises:
            StoreError: If the operation fails
        """

    @abstractmethod
    async def get_count(self, key: str) -> int:
        """
        Read a counter without incrementing it.

        Args:
            key: Counter key

        Returns:
            Current count, 0 when the key is absent

        Raises:
            StoreError: If the operation fails
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Delete a key.

        Args:
            key: Store key

        Raises:
            StoreError: If the operation fails
        """

    @abstractmethod
    async def set_state(self, key: str, state: str, ttl: float) -> None:
        """
        Store an opaque state blob with an expiration.

        Args:
            key: State key
            state: Serialized state
            ttl: Time to live in seconds

        Raises:
            StoreError: If the operation fails
        """

    @abstractmethod
    async def get_state(self, key: str) -> str:
        """
        Fetch an opaque state blob.

        Args:
            key: State key

        Returns:
            Serialized state

        Raises:
            StateNotFoundError: If no state is stored under the key
            StoreError: If the operation fails
        """

    async def increment_preserve_ttl(self, key: str, ttl: float) -> int:
        """
        Increment a counter, setting its expiration only when it is created.

        An existing TTL is never renewed. Backends that can do both steps
        atomically should override this.

        Args:
            key: Counter key
            ttl: Time to live in seconds for a new counter

        Returns:
            Counter value after the increment
        """
        count = await self.increment(key)
        if count == 1 and ttl > 0:
            await self.expire(key, ttl)
        return count
