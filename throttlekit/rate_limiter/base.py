"""
Base classes for rate limiters.

Engines keep no per-client state of their own: every decision is computed
from, and written back to, the shared CounterStore. One engine instance can
therefore serve any number of concurrent requests.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from throttlekit.config.logging import get_logger
from throttlekit.exceptions import (
    ConfigurationError,
    InvalidIdentifierError,
    MalformedStateError,
    StateNotFoundError,
)
from throttlekit.rate_limiter.config import RateLimitStrategy
from throttlekit.store.base import CounterStore

logger = get_logger(__name__)

StateT = TypeVar("StateT", bound=BaseModel)


@dataclass(frozen=True)
class RateLimitInfo:
    """
    Rate limit metadata for one identifier.

    Attributes:
        limit: Configured limit (window limit or bucket capacity)
        remaining: Requests still available right now
        reset: UNIX epoch seconds when the limit resets
    """

    limit: int
    remaining: int
    reset: int


def to_seconds(value: float | timedelta) -> float:
    """Normalize a duration given as seconds or timedelta."""
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class RateLimiter(ABC):
    """Base class for rate limiters."""

    strategy: ClassVar[RateLimitStrategy]

    def __init__(self, store: CounterStore, clock: Callable[[], float] = time.time):
        """
        Initialize rate limiter.

        Args:
            store: Counter/state store holding all limiter state
            clock: Time source function returning UNIX time in seconds
        """
        self.store = store
        self.clock = clock

    @property
    @abstractmethod
    def limit(self) -> int:
        """Limit reported in X-RateLimit-Limit."""

    @abstractmethod
    async def allow(self, identifier: str) -> bool:
        """
        Decide whether a request from identifier may proceed.

        Args:
            identifier: Rate limit partition key (e.g. "api:<key>", "ip:<addr>")

        Returns:
            True if the request is permitted, False if it is rate limited

        Raises:
            InvalidIdentifierError: If identifier is empty
            StoreError: If the store fails
        """

    @abstractmethod
    async def info(self, identifier: str) -> RateLimitInfo:
        """
        Compute limit, remaining and reset without consuming capacity.

        Args:
            identifier: Rate limit partition key

        Returns:
            Current rate limit metadata

        Raises:
            InvalidIdentifierError: If identifier is empty
            StoreError: If the store fails
        """

    @abstractmethod
    async def reset(self, identifier: str) -> None:
        """
        Drop all stored state for identifier.

        Args:
            identifier: Rate limit partition key
        """

    def _now(self) -> float:
        return self.clock()

    @staticmethod
    def _check_identifier(identifier: str) -> None:
        if not identifier:
            raise InvalidIdentifierError("Rate limit identifier must be a non-empty string")


class WindowRateLimiter(RateLimiter):
    """Shared parameters for the fixed and sliding window counters."""

    def __init__(
        self,
        store: CounterStore,
        limit: int,
        window: float | timedelta,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize window rate limiter.

        Args:
            store: Counter/state store
            limit: Maximum requests per window
            window: Window length in seconds or as a timedelta
            clock: Time source function returning UNIX time in seconds

        Raises:
            ConfigurationError: If limit or window are invalid
        """
        super().__init__(store, clock)
        window_seconds = to_seconds(window)
        if limit < 1:
            raise ConfigurationError("limit must be >= 1", key="limit")
        if window_seconds <= 0:
            raise ConfigurationError("window must be positive", key="window")

        self._limit = limit
        self.window_seconds = window_seconds

    @property
    def limit(self) -> int:
        return self._limit

    def _window_index(self, now: float) -> int:
        return int(now // self.window_seconds)

    def _window_end(self, window_index: int) -> int:
        return int((window_index + 1) * self.window_seconds)


class BucketRateLimiter(RateLimiter):
    """Shared state handling for the token and leaky bucket strategies."""

    def __init__(
        self,
        store: CounterStore,
        state_expiry: float | timedelta,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize bucket rate limiter.

        Args:
            store: Counter/state store
            state_expiry: TTL for idle bucket state (garbage collection only)
            clock: Time source function returning UNIX time in seconds

        Raises:
            ConfigurationError: If state_expiry is not positive
        """
        super().__init__(store, clock)
        self.state_expiry = to_seconds(state_expiry)
        if self.state_expiry <= 0:
            raise ConfigurationError("state expiry must be positive", key="window")

    @abstractmethod
    def _key(self, identifier: str) -> str:
        """Store key for identifier's bucket."""

    async def _load_state(
        self,
        key: str,
        model: type[StateT],
        fresh: Callable[[], StateT],
    ) -> StateT:
        """
        Load and decode bucket state, initializing it when absent.

        A blob that fails to decode raises instead of being replaced with
        fresh state.

        Args:
            key: Store key
            model: Pydantic model of the state
            fresh: Factory for the initial state

        Returns:
            Decoded or initial state

        Raises:
            MalformedStateError: If the stored blob is invalid
            StoreError: If the store fails
        """
        try:
            raw = await self.store.get_state(key)
        except StateNotFoundError:
            return fresh()

        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.error("bucket_state_malformed", key=key, strategy=self.strategy.value)
            raise MalformedStateError(key, e) from e

    async def _save_state(self, key: str, state: BaseModel) -> None:
        await self.store.set_state(key, state.model_dump_json(), self.state_expiry)

    async def reset(self, identifier: str) -> None:
        self._check_identifier(identifier)
        await self.store.delete(self._key(identifier))

    def _elapsed(self, now: float, since: float) -> float:
        # Clock skew between workers can put `since` in the future.
        return max(0.0, now - since)
