"""
In-memory counter/state store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from throttlekit.exceptions import MalformedStateError, StateNotFoundError
from throttlekit.store.base import CounterStore


@dataclass
class _Entry:
    value: int | str
    expires_at: float | None = None


class InMemoryStore(CounterStore):
    """Dictionary-backed store with per-key expiration."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _increment_locked(self, key: str) -> tuple[int, _Entry]:
        entry = self._live_entry(key)
        if entry is None:
            entry = _Entry(value=0)
            self._entries[key] = entry
        if not isinstance(entry.value, int):
            try:
                entry.value = int(entry.value)
            except ValueError as e:
                raise MalformedStateError(key, e) from e
        entry.value += 1
        return entry.value, entry

    async def increment(self, key: str) -> int:
        with self._lock:
            count, _ = self._increment_locked(key)
            return count

    async def increment_preserve_ttl(self, key: str, ttl: float) -> int:
        with self._lock:
            count, entry = self._increment_locked(key)
            if entry.expires_at is None and ttl > 0:
                entry.expires_at = self._clock() + ttl
            return count

    async def expire(self, key: str, ttl: float) -> None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                entry.expires_at = self._clock() + ttl

    async def get_count(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return 0
            try:
                return int(entry.value)
            except ValueError as e:
                raise MalformedStateError(key, e) from e

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def set_state(self, key: str, state: str, ttl: float) -> None:
        with self._lock:
            expires_at = self._clock() + ttl if ttl > 0 else None
            self._entries[key] = _Entry(value=state, expires_at=expires_at)

    async def get_state(self, key: str) -> str:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                raise StateNotFoundError(key)
            return str(entry.value)

    def ttl(self, key: str) -> float | None:
        """
        Get the remaining time to live of a key.

        Args:
            key: Store key

        Returns:
            Seconds until expiry, or None if the key is absent or never expires
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, entry in self._entries.items()
                if entry.expires_at is not None and entry.expires_at <= now
            ]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
