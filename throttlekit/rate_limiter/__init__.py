"""
Rate limiting for throttlekit.

Provides four rate limiting algorithms (fixed window, sliding window, token
bucket, leaky bucket) over a shared counter/state store, plus the HTTP
adapters that apply them to FastAPI applications.
"""

from throttlekit.rate_limiter.base import RateLimiter, RateLimitInfo
from throttlekit.rate_limiter.config import (
    RateLimitConfig,
    RateLimiterSettings,
    RateLimitStrategy,
    get_rate_limiter_settings,
)
from throttlekit.rate_limiter.factory import create_rate_limiter
from throttlekit.rate_limiter.fixed_window import FixedWindowRateLimiter
from throttlekit.rate_limiter.identifier import IdentifierExtractor
from throttlekit.rate_limiter.leaky_bucket import LeakyBucketRateLimiter
from throttlekit.rate_limiter.middleware import (
    RateLimitDependency,
    RateLimitEnforcer,
    RateLimitMiddleware,
    RateLimitRejected,
    register_rate_limit_handlers,
)
from throttlekit.rate_limiter.sliding_window import SlidingWindowRateLimiter
from throttlekit.rate_limiter.token_bucket import TokenBucketRateLimiter

__all__ = [
    "RateLimiter",
    "RateLimitInfo",
    "RateLimitConfig",
    "RateLimitStrategy",
    "RateLimiterSettings",
    "get_rate_limiter_settings",
    "create_rate_limiter",
    "FixedWindowRateLimiter",
    "SlidingWindowRateLimiter",
    "TokenBucketRateLimiter",
    "LeakyBucketRateLimiter",
    "IdentifierExtractor",
    "RateLimitEnforcer",
    "RateLimitMiddleware",
    "RateLimitDependency",
    "RateLimitRejected",
    "register_rate_limit_handlers",
]
