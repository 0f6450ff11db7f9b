"""
Leaky bucket rate limiter.
"""

import time
from collections.abc import Callable
from datetime import timedelta

from pydantic import BaseModel, Field

from throttlekit.exceptions import ConfigurationError
from throttlekit.rate_limiter.base import BucketRateLimiter, RateLimitInfo
from throttlekit.rate_limiter.config import RateLimitStrategy
from throttlekit.rate_limiter.keys import RateLimitKeys
from throttlekit.store.base import CounterStore


class LeakyBucketState(BaseModel):
    """Persisted leaky bucket state."""

    water: int = Field(..., ge=0, description="Units currently in the bucket")
    last_leak: float = Field(..., description="UNIX time of the last leak")


class LeakyBucketRateLimiter(BucketRateLimiter):
    """
    Leaky bucket rate limiter.

    Every permitted request adds one unit of water; water drains at a
    constant leak rate in whole units. A full bucket rejects requests. A new
    bucket starts empty.

    State is written on every call, including denials.
    """

    strategy = RateLimitStrategy.LEAKY_BUCKET

    def __init__(
        self,
        store: CounterStore,
        capacity: int,
        leak_rate: float,
        state_expiry: float | timedelta,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize leaky bucket rate limiter.

        Args:
            store: Counter/state store
            capacity: Maximum units in the bucket
            leak_rate: Units drained per second
            state_expiry: TTL for idle bucket state
            clock: Time source function returning UNIX time in seconds

        Raises:
            ConfigurationError: If capacity or leak_rate are invalid
        """
        super().__init__(store, state_expiry, clock)
        if capacity < 1:
            raise ConfigurationError("capacity must be >= 1", key="burst")
        if leak_rate <= 0:
            raise ConfigurationError("leak rate must be positive", key="rate")

        self.capacity = capacity
        self.leak_rate = leak_rate

    @property
    def limit(self) -> int:
        return self.capacity

    def _key(self, identifier: str) -> str:
        return RateLimitKeys.leaky_bucket(identifier)

    async def _current_state(self, key: str, now: float) -> LeakyBucketState:
        return await self._load_state(
            key,
            LeakyBucketState,
            lambda: LeakyBucketState(water=0, last_leak=now),
        )

    def _drained_water(self, state: LeakyBucketState, now: float) -> int:
        leaked = int(self._elapsed(now, state.last_leak) * self.leak_rate)
        return max(0, state.water - leaked)

    async def allow(self, identifier: str) -> bool:
        self._check_identifier(identifier)
        key = self._key(identifier)
        now = self._now()

        state = await self._current_state(key, now)
        water = self._drained_water(state, now)

        if water >= self.capacity:
            # Only move last_leak when water actually drained.
            last_leak = now if water < state.water else state.last_leak
            await self._save_state(key, LeakyBucketState(water=water, last_leak=last_leak))
            return False

        await self._save_state(key, LeakyBucketState(water=water + 1, last_leak=now))
        return True

    async def info(self, identifier: str) -> RateLimitInfo:
        self._check_identifier(identifier)
        key = self._key(identifier)
        now = self._now()

        state = await self._current_state(key, now)
        water = self._drained_water(state, now)

        if water > 0:
            reset = int(now) + int(water / self.leak_rate)
        else:
            reset = int(now)

        return RateLimitInfo(
            limit=self.capacity,
            remaining=max(0, self.capacity - water),
            reset=reset,
        )
