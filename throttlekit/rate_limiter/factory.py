"""
Rate limiter factory.

Builds the engine selected by a RateLimitConfig.
"""

import time
from collections.abc import Callable

from throttlekit.config.logging import get_logger
from throttlekit.exceptions import ConfigurationError
from throttlekit.rate_limiter.base import RateLimiter
from throttlekit.rate_limiter.config import RateLimitConfig, RateLimitStrategy
from throttlekit.rate_limiter.fixed_window import FixedWindowRateLimiter
from throttlekit.rate_limiter.leaky_bucket import LeakyBucketRateLimiter
from throttlekit.rate_limiter.sliding_window import SlidingWindowRateLimiter
from throttlekit.rate_limiter.token_bucket import TokenBucketRateLimiter
from throttlekit.store.base import CounterStore

logger = get_logger(__name__)

_Builder = Callable[[RateLimitConfig, CounterStore, Callable[[], float]], RateLimiter]


def _fixed_window(
    config: RateLimitConfig, store: CounterStore, clock: Callable[[], float]
) -> RateLimiter:
    return FixedWindowRateLimiter(store, config.limit, config.window, clock=clock)


def _sliding_window(
    config: RateLimitConfig, store: CounterStore, clock: Callable[[], float]
) -> RateLimiter:
    return SlidingWindowRateLimiter(store, config.limit, config.window, clock=clock)


def _token_bucket(
    config: RateLimitConfig, store: CounterStore, clock: Callable[[], float]
) -> RateLimiter:
    return TokenBucketRateLimiter(
        store,
        rate=config.rate,
        burst=config.burst,
        state_expiry=config.window,
        clock=clock,
    )


def _leaky_bucket(
    config: RateLimitConfig, store: CounterStore, clock: Callable[[], float]
) -> RateLimiter:
    return LeakyBucketRateLimiter(
        store,
        capacity=config.burst,
        leak_rate=config.rate,
        state_expiry=config.window,
        clock=clock,
    )


_BUILDERS: dict[RateLimitStrategy, _Builder] = {
    RateLimitStrategy.FIXED_WINDOW: _fixed_window,
    RateLimitStrategy.SLIDING_WINDOW: _sliding_window,
    RateLimitStrategy.TOKEN_BUCKET: _token_bucket,
    RateLimitStrategy.LEAKY_BUCKET: _leaky_bucket,
}


def create_rate_limiter(
    config: RateLimitConfig,
    store: CounterStore,
    clock: Callable[[], float] = time.time,
) -> RateLimiter:
    """
    Construct the rate limiter selected by config.

    Args:
        config: Strategy and parameters
        store: Counter/state store shared by all requests
        clock: Time source function returning UNIX time in seconds

    Returns:
        Configured rate limiter

    Raises:
        ConfigurationError: If the strategy is unknown
    """
    builder = _BUILDERS.get(config.strategy)
    if builder is None:
        raise ConfigurationError(
            f"Unknown rate limit strategy: {config.strategy!r}", key="strategy"
        )

    limiter = builder(config, store, clock)
    logger.info(
        "rate_limiter_created",
        strategy=limiter.strategy.value,
        limit=limiter.limit,
        window_seconds=config.window_seconds,
    )
    return limiter
