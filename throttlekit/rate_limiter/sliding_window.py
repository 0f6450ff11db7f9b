"""
Sliding window rate limiter.
"""

from throttlekit.rate_limiter.base import RateLimitInfo, WindowRateLimiter
from throttlekit.rate_limiter.config import RateLimitStrategy
from throttlekit.rate_limiter.keys import RateLimitKeys


class SlidingWindowRateLimiter(WindowRateLimiter):
    """
    Sliding window counter rate limiter.

    Approximates a true sliding window from two fixed-window counters: the
    previous window's count is weighted by the fraction of it still inside
    the sliding window and added to the current window's count. Only
    permitted requests are counted.

    The two counters are read separately, so under concurrency the weighted
    sum can be slightly stale.
    """

    strategy = RateLimitStrategy.SLIDING_WINDOW

    async def _weighted_count(self, identifier: str, now: float) -> tuple[int, str, int]:
        """
        Compute the weighted request count for identifier.

        Args:
            identifier: Rate limit partition key
            now: Current UNIX time

        Returns:
            Tuple of (weighted_count, current_window_key, current_window_index)
        """
        current_window = self._window_index(now)
        current_key = RateLimitKeys.sliding_window(identifier, current_window)
        previous_key = RateLimitKeys.sliding_window(identifier, current_window - 1)

        current_count = await self.store.get_count(current_key)
        previous_count = await self.store.get_count(previous_key)

        offset = (now % self.window_seconds) / self.window_seconds
        previous_weight = 1 - offset

        weighted_count = int(previous_count * previous_weight) + current_count
        return weighted_count, current_key, current_window

    async def allow(self, identifier: str) -> bool:
        self._check_identifier(identifier)
        weighted_count, current_key, _ = await self._weighted_count(identifier, self._now())

        if weighted_count >= self._limit:
            return False

        # Must outlive the next window, where it is read as the previous count.
        await self.store.increment_preserve_ttl(current_key, self.window_seconds * 2)
        return True

    async def info(self, identifier: str) -> RateLimitInfo:
        self._check_identifier(identifier)
        weighted_count, _, current_window = await self._weighted_count(identifier, self._now())

        return RateLimitInfo(
            limit=self._limit,
            remaining=max(0, self._limit - weighted_count),
            reset=self._window_end(current_window),
        )

    async def reset(self, identifier: str) -> None:
        """
        Reset the current and previous window counters for identifier.

        Args:
            identifier: Rate limit partition key
        """
        self._check_identifier(identifier)
        current_window = self._window_index(self._now())
        await self.store.delete(RateLimitKeys.sliding_window(identifier, current_window))
        await self.store.delete(RateLimitKeys.sliding_window(identifier, current_window - 1))
