"""
Rate limit key patterns and builders.
"""

from typing import Any


class RateLimitKeys:
    """Store key patterns for each rate limiting strategy."""

    # Key prefixes
    FIXED_WINDOW_PREFIX = "rate_limit_fixed_window"
    SLIDING_WINDOW_PREFIX = "rate_limit_sliding_window"
    TOKEN_BUCKET_PREFIX = "rate_limit_token_bucket"
    LEAKY_BUCKET_PREFIX = "rate_limit_leaky_bucket"

    # Key separators
    SEPARATOR = ":"

    @classmethod
    def fixed_window(cls, identifier: str, window_index: int) -> str:
        """
        Generate key for a fixed window counter.

        Args:
            identifier: Rate limit identifier
            window_index: floor(now / window)

        Returns:
            Store key
        """
        return cls.custom(cls.FIXED_WINDOW_PREFIX, identifier, window_index)

    @classmethod
    def sliding_window(cls, identifier: str, window_index: int) -> str:
        """
        Generate key for one of the sliding window's component counters.

        Args:
            identifier: Rate limit identifier
            window_index: floor(now / window), or one less for the previous window

        Returns:
            Store key
        """
        return cls.custom(cls.SLIDING_WINDOW_PREFIX, identifier, window_index)

    @classmethod
    def token_bucket(cls, identifier: str) -> str:
        """Generate key for token bucket state."""
        return cls.custom(cls.TOKEN_BUCKET_PREFIX, identifier)

    @classmethod
    def leaky_bucket(cls, identifier: str) -> str:
        """Generate key for leaky bucket state."""
        return cls.custom(cls.LEAKY_BUCKET_PREFIX, identifier)

    @classmethod
    def custom(cls, *parts: Any) -> str:
        """
        Generate custom key from parts.

        Args:
            *parts: Key parts to join

        Returns:
            Store key
        """
        return cls.SEPARATOR.join(str(part) for part in parts)
