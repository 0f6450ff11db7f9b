"""
Fixed window rate limiter.
"""

from throttlekit.rate_limiter.base import RateLimitInfo, WindowRateLimiter
from throttlekit.rate_limiter.config import RateLimitStrategy
from throttlekit.rate_limiter.keys import RateLimitKeys


class FixedWindowRateLimiter(WindowRateLimiter):
    """
    Fixed window rate limiter.

    Counts requests per identifier in windows aligned to multiples of the
    window length. Every request increments the counter, including requests
    that end up rejected, so a client that keeps retrying stays limited until
    the window rolls over.
    """

    strategy = RateLimitStrategy.FIXED_WINDOW

    async def allow(self, identifier: str) -> bool:
        self._check_identifier(identifier)
        window_index = self._window_index(self._now())
        key = RateLimitKeys.fixed_window(identifier, window_index)

        count = await self.store.increment_preserve_ttl(key, self.window_seconds)
        return count <= self._limit

    async def info(self, identifier: str) -> RateLimitInfo:
        self._check_identifier(identifier)
        window_index = self._window_index(self._now())
        key = RateLimitKeys.fixed_window(identifier, window_index)

        count = await self.store.get_count(key)
        return RateLimitInfo(
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset=self._window_end(window_index),
        )

    async def reset(self, identifier: str) -> None:
        """
        Reset the current window's counter for identifier.

        Args:
            identifier: Rate limit partition key
        """
        self._check_identifier(identifier)
        window_index = self._window_index(self._now())
        await self.store.delete(RateLimitKeys.fixed_window(identifier, window_index))
