"""
Unit tests for the rate limiter factory.
"""

from datetime import timedelta

import pytest

from throttlekit.exceptions import ConfigurationError
from throttlekit.rate_limiter import (
    FixedWindowRateLimiter,
    LeakyBucketRateLimiter,
    RateLimitConfig,
    RateLimitStrategy,
    SlidingWindowRateLimiter,
    TokenBucketRateLimiter,
    create_rate_limiter,
)


class TestCreateRateLimiter:
    """Tests for create_rate_limiter."""

    @pytest.mark.parametrize(
        ("strategy", "expected"),
        [
            (RateLimitStrategy.FIXED_WINDOW, FixedWindowRateLimiter),
            (RateLimitStrategy.SLIDING_WINDOW, SlidingWindowRateLimiter),
            (RateLimitStrategy.TOKEN_BUCKET, TokenBucketRateLimiter),
            (RateLimitStrategy.LEAKY_BUCKET, LeakyBucketRateLimiter),
        ],
    )
    def test_strategy_selection(self, store, strategy, expected):
        """Test each strategy builds its engine."""
        limiter = create_rate_limiter(RateLimitConfig(strategy=strategy), store)

        assert isinstance(limiter, expected)
        assert limiter.strategy == strategy

    def test_window_parameters(self, store, clock):
        """Test windowed strategies take limit and window."""
        config = RateLimitConfig(limit=25, window=timedelta(seconds=30))

        limiter = create_rate_limiter(config, store, clock=clock)

        assert limiter.limit == 25
        assert limiter.window_seconds == 30
        assert limiter.clock is clock

    def test_token_bucket_parameters(self, store):
        """Test token bucket takes rate, burst and window as expiry."""
        config = RateLimitConfig(
            strategy=RateLimitStrategy.TOKEN_BUCKET,
            rate=2.5,
            burst=8,
            window=timedelta(minutes=5),
        )

        limiter = create_rate_limiter(config, store)

        assert limiter.rate == 2.5
        assert limiter.burst == 8
        assert limiter.limit == 8
        assert limiter.state_expiry == 300

    def test_leaky_bucket_parameters(self, store):
        """Test leaky bucket takes burst as capacity and rate as leak rate."""
        config = RateLimitConfig(strategy=RateLimitStrategy.LEAKY_BUCKET, rate=0.5, burst=4)

        limiter = create_rate_limiter(config, store)

        assert limiter.capacity == 4
        assert limiter.leak_rate == 0.5
        assert limiter.state_expiry == 60

    def test_unknown_strategy(self, store):
        """Test an unknown strategy fails fast."""
        config = RateLimitConfig.model_construct(strategy="fastest_window")

        with pytest.raises(ConfigurationError) as exc_info:
            create_rate_limiter(config, store)

        assert exc_info.value.details == {"key": "strategy"}
