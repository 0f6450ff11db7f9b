"""
Token bucket rate limiter.
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


class TokenBucketState(BaseModel):
    """Persisted token bucket state."""

    tokens: float = Field(..., ge=0, description="Tokens currently in the bucket")
    last_refill: float = Field(..., description="UNIX time of the last refill")


class TokenBucketRateLimiter(BucketRateLimiter):
    """
    Token bucket rate limiter.

    Tokens are added to a bucket at a constant rate up to a maximum capacity
    (the burst). Each request consumes one token. If the bucket holds less
    than one token, the request is denied. A new bucket starts full.

    State is only written when a token is consumed; denied requests leave the
    stored bucket untouched.
    """

    strategy = RateLimitStrategy.TOKEN_BUCKET

    def __init__(
        self,
        store: CounterStore,
        rate: float,
        burst: int,
        state_expiry: float | timedelta,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize token bucket rate limiter.

        Args:
            store: Counter/state store
            rate: Tokens added per second
            burst: Maximum tokens in the bucket
            state_expiry: TTL for idle bucket state
            clock: Time source function returning UNIX time in seconds

        Raises:
            ConfigurationError: If rate or burst are invalid
        """
        super().__init__(store, state_expiry, clock)
        if rate <= 0:
            raise ConfigurationError("rate must be positive", key="rate")
        if burst < 1:
            raise ConfigurationError("burst must be >= 1", key="burst")

        self.rate = rate
        self.burst = burst

    @property
    def limit(self) -> int:
        return self.burst

    def _key(self, identifier: str) -> str:
        return RateLimitKeys.token_bucket(identifier)

    async def _current_state(self, key: str, now: float) -> TokenBucketState:
        return await self._load_state(
            key,
            TokenBucketState,
            lambda: TokenBucketState(tokens=float(self.burst), last_refill=now),
        )

    def _refilled_tokens(self, state: TokenBucketState, now: float) -> float:
        elapsed = self._elapsed(now, state.last_refill)
        return min(float(self.burst), state.tokens + elapsed * self.rate)

    async def allow(self, identifier: str) -> bool:
        self._check_identifier(identifier)
        key = self._key(identifier)
        now = self._now()

        state = await self._current_state(key, now)
        tokens = self._refilled_tokens(state, now)

        if tokens < 1:
            return False

        await self._save_state(key, TokenBucketState(tokens=tokens - 1, last_refill=now))
        return True

    async def info(self, identifier: str) -> RateLimitInfo:
        """
        Report the bucket's current level without consuming a token.

        ``reset`` is the time until the bucket is full again, not the time
        until the next token arrives.

        Args:
            identifier: Rate limit partition key

        Returns:
            Current rate limit metadata
        """
        self._check_identifier(identifier)
        key = self._key(identifier)
        now = self._now()

        state = await self._current_state(key, now)
        tokens = self._refilled_tokens(state, now)

        time_to_full = int((self.burst - tokens) / self.rate)
        return RateLimitInfo(
            limit=self.burst,
            remaining=int(tokens),
            reset=int(now) + time_to_full,
        )
