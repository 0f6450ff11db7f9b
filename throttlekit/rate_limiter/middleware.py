"""
HTTP adapters applying a rate limiter to FastAPI/Starlette applications.

Per request: extract identifier -> allow() -> continue (permit), or
info() + 429 (deny), or 500 (any rate limiter failure). Store errors never
reach the client beyond the generic 500 body.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar, cast

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from throttlekit.config.logging import get_logger
from throttlekit.exceptions import StoreUnavailableError, ThrottleKitError
from throttlekit.observability.metrics import (
    rate_limit_check_duration_seconds,
    rate_limit_decisions_total,
)
from throttlekit.rate_limiter.base import RateLimiter, RateLimitInfo
from throttlekit.rate_limiter.config import DEFAULT_EXEMPT_PATHS
from throttlekit.rate_limiter.headers import (
    rate_limit_error_response,
    rate_limit_exceeded_response,
    rate_limit_headers,
)
from throttlekit.rate_limiter.identifier import IdentifierExtractor, hash_identifier

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimitDecision(str, Enum):
    """Outcome of a rate limit check."""

    ALLOWED = "allowed"
    DENIED = "denied"
    ERROR = "error"


class RateLimitRejected(Exception):
    """Carries the 429/500 response for a request the limiter rejected."""

    def __init__(self, response: Response, decision: RateLimitDecision):
        """
        Initialize exception.

        Args:
            response: Response to return to the client
            decision: DENIED or ERROR
        """
        super().__init__(decision.value)
        self.response = response
        self.decision = decision


class RateLimitEnforcer:
    """Runs one rate limit check per request."""

    def __init__(
        self,
        limiter: RateLimiter,
        identifier_extractor: Callable[[Request], str] | None = None,
        timeout: float = 1.0,
        include_headers_on_success: bool = False,
    ):
        """
        Initialize enforcer.

        Args:
            limiter: Rate limiter engine
            identifier_extractor: Request -> identifier; API key or IP by default
            timeout: Deadline in seconds for each limiter call
            include_headers_on_success: Return X-RateLimit-* headers for allowed requests
        """
        self.limiter = limiter
        self.identifier_extractor = identifier_extractor or IdentifierExtractor()
        self.timeout = timeout
        self.include_headers_on_success = include_headers_on_success

    @property
    def strategy(self) -> str:
        return self.limiter.strategy.value

    async def _with_deadline(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError(
                f"Rate limit {operation} timed out after {self.timeout}s",
                operation=operation,
            ) from e

    def _reject(self, response: Response, decision: RateLimitDecision) -> RateLimitRejected:
        rate_limit_decisions_total.labels(strategy=self.strategy, decision=decision.value).inc()
        return RateLimitRejected(response, decision)

    async def enforce(self, request: Request) -> dict[str, str]:
        """
        Check request against the limiter.

        Args:
            request: Incoming request

        Returns:
            Headers to attach to the downstream response (empty unless
            include_headers_on_success is set)

        Raises:
            RateLimitRejected: With a 429 response when denied, or a 500
                response when the limiter fails
        """
        start = time.perf_counter()
        try:
            return await self._enforce(request)
        finally:
            rate_limit_check_duration_seconds.labels(strategy=self.strategy).observe(
                time.perf_counter() - start
            )

    async def _enforce(self, request: Request) -> dict[str, str]:
        path = request.url.path
        identifier: str | None = None
        try:
            identifier = self.identifier_extractor(request)
            allowed = await self._with_deadline("allow", self.limiter.allow(identifier))
            info = None
            if not allowed or self.include_headers_on_success:
                info = await self._with_deadline("info", self.limiter.info(identifier))
        except ThrottleKitError as e:
            logger.error(
                "rate_limit_error",
                strategy=self.strategy,
                path=path,
                key_hash=hash_identifier(identifier) if identifier else None,
                error_code=e.error_code,
                error=e.message,
            )
            raise self._reject(rate_limit_error_response(), RateLimitDecision.ERROR) from e
        except Exception as e:
            logger.exception("rate_limit_unexpected_error", strategy=self.strategy, path=path)
            raise self._reject(rate_limit_error_response(), RateLimitDecision.ERROR) from e

        if not allowed:
            info = cast(RateLimitInfo, info)
            logger.warning(
                "rate_limit_exceeded",
                strategy=self.strategy,
                path=path,
                key_type=IdentifierExtractor.source(identifier),
                key_hash=hash_identifier(identifier),
                limit=info.limit,
                remaining=info.remaining,
                reset=info.reset,
            )
            response = rate_limit_exceeded_response(info, now=self.limiter.clock())
            raise self._reject(response, RateLimitDecision.DENIED)

        rate_limit_decisions_total.labels(
            strategy=self.strategy, decision=RateLimitDecision.ALLOWED.value
        ).inc()
        logger.debug(
            "rate_limit_allowed",
            strategy=self.strategy,
            path=path,
            key_hash=hash_identifier(identifier),
        )
        return rate_limit_headers(info) if info is not None else {}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce a rate limit on every non-exempt route."""

    def __init__(
        self,
        app: Any,
        limiter: RateLimiter,
        identifier_extractor: Callable[[Request], str] | None = None,
        exempt_paths: list[str] | None = None,
        timeout: float = 1.0,
        include_headers_on_success: bool = False,
    ):
        """
        Initialize rate limit middleware.

        Args:
            app: ASGI application
            limiter: Rate limiter engine
            identifier_extractor: Request -> identifier; API key or IP by default
            exempt_paths: Paths (and their subpaths) that bypass rate limiting
            timeout: Deadline in seconds for each limiter call
            include_headers_on_success: Attach X-RateLimit-* headers to allowed responses
        """
        super().__init__(app)
        self.enforcer = RateLimitEnforcer(
            limiter,
            identifier_extractor=identifier_extractor,
            timeout=timeout,
            include_headers_on_success=include_headers_on_success,
        )
        self.exempt_paths = list(DEFAULT_EXEMPT_PATHS if exempt_paths is None else exempt_paths)

    def _is_exempt(self, path: str) -> bool:
        """
        Check if path is exempt from rate limiting.

        Args:
            path: Request path

        Returns:
            True if path equals an exempt path or lies below one
        """
        return any(
            path == exempt or path.startswith(exempt.rstrip("/") + "/")
            for exempt in self.exempt_paths
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request with rate limiting.

        Args:
            request: HTTP request
            call_next: Next middleware in chain

        Returns:
            HTTP response
        """
        if self._is_exempt(request.url.path):
            return await call_next(request)

        try:
            headers = await self.enforcer.enforce(request)
        except RateLimitRejected as rejected:
            return rejected.response

        response = await call_next(request)
        response.headers.update(headers)
        return response


class RateLimitDependency:
    """
    FastAPI dependency applying a rate limit to selected routes.

    Usage:
        limit_users = RateLimitDependency(limiter, IdentifierExtractor(per_path=True))
        router = APIRouter(dependencies=[Depends(limit_users)])

    The application must install the rejection handler with
    register_rate_limit_handlers(app).
    """

    def __init__(
        self,
        limiter: RateLimiter,
        identifier_extractor: Callable[[Request], str] | None = None,
        timeout: float = 1.0,
        include_headers_on_success: bool = False,
    ):
        """
        Initialize dependency.

        Args:
            limiter: Rate limiter engine
            identifier_extractor: Request -> identifier; API key or IP by default
            timeout: Deadline in seconds for each limiter call
            include_headers_on_success: Attach X-RateLimit-* headers to allowed responses
        """
        self.enforcer = RateLimitEnforcer(
            limiter,
            identifier_extractor=identifier_extractor,
            timeout=timeout,
            include_headers_on_success=include_headers_on_success,
        )

    async def __call__(self, request: Request, response: Response) -> None:
        headers = await self.enforcer.enforce(request)
        response.headers.update(headers)


async def _rate_limit_rejected_handler(request: Request, exc: Exception) -> Response:
    return cast(RateLimitRejected, exc).response


def register_rate_limit_handlers(app: FastAPI) -> None:
    """
    Install the handler rendering RateLimitRejected raised by dependencies.

    Args:
        app: FastAPI application
    """
    app.add_exception_handler(RateLimitRejected, _rate_limit_rejected_handler)
