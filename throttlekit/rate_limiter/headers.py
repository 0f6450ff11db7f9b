"""
Rate limit response formatting.
"""

import time

from fastapi import status
from fastapi.responses import JSONResponse

from throttlekit.rate_limiter.base import RateLimitInfo

HEADER_LIMIT = "X-RateLimit-Limit"
HEADER_REMAINING = "X-RateLimit-Remaining"
HEADER_RESET = "X-RateLimit-Reset"
HEADER_RETRY_AFTER = "Retry-After"

RATE_LIMIT_EXCEEDED_MESSAGE = "Rate limit exceeded"
INTERNAL_ERROR_MESSAGE = "Internal rate limit error"


def rate_limit_headers(info: RateLimitInfo) -> dict[str, str]:
    """
    Render the X-RateLimit-* headers.

    Args:
        info: Rate limit metadata

    Returns:
        Header mapping
    """
    return {
        HEADER_LIMIT: str(info.limit),
        HEADER_REMAINING: str(info.remaining),
        HEADER_RESET: str(info.reset),
    }


def retry_after_seconds(info: RateLimitInfo, now: float | None = None) -> int:
    """Seconds until the reported reset, never negative."""
    current = time.time() if now is None else now
    return max(0, int(info.reset - current))


def rate_limit_exceeded_response(info: RateLimitInfo, now: float | None = None) -> JSONResponse:
    """
    Build the 429 response for a denied request.

    Args:
        info: Rate limit metadata for the denied identifier
        now: Current UNIX time used for Retry-After

    Returns:
        JSON response with rate limit headers
    """
    headers = rate_limit_headers(info)
    headers[HEADER_RETRY_AFTER] = str(retry_after_seconds(info, now))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": RATE_LIMIT_EXCEEDED_MESSAGE},
        headers=headers,
    )


def rate_limit_error_response() -> JSONResponse:
    """Build the generic 500 response for rate limiter failures."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR_MESSAGE},
    )
