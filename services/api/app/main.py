"""
Example REST API protected by throttlekit.

Provides:
- Application-wide rate limiting (strategy from RATE_LIMITER_* settings)
- A per-path fixed window limit on the users routes
- Health and Prometheus metrics endpoints (exempt from rate limiting)
"""

import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Response

from throttlekit.config.logging import get_logger, setup_logging
from throttlekit.config.settings import Settings, get_settings
from throttlekit.observability.metrics import get_metrics
from throttlekit.rate_limiter import (
    IdentifierExtractor,
    RateLimitConfig,
    RateLimitDependency,
    RateLimiterSettings,
    RateLimitMiddleware,
    RateLimitStrategy,
    create_rate_limiter,
    get_rate_limiter_settings,
    register_rate_limit_handlers,
)
from throttlekit.store import CounterStore, InMemoryStore, RedisClient, RedisStore
from throttlekit.store.config import get_redis_store_settings

logger = get_logger(__name__)

# Users routes: 3 requests per minute per caller and path.
USERS_RATE_LIMIT = RateLimitConfig(
    strategy=RateLimitStrategy.FIXED_WINDOW,
    limit=3,
    window=timedelta(minutes=1),
)


def _build_store(settings: Settings) -> tuple[CounterStore, RedisClient | None]:
    if settings.store_backend == "memory":
        return InMemoryStore(), None

    redis_settings = get_redis_store_settings()
    redis_client = RedisClient(
        url=redis_settings.get_effective_url(),
        max_connections=redis_settings.max_connections,
        decode_responses=redis_settings.decode_responses,
        socket_timeout=redis_settings.socket_timeout,
        socket_connect_timeout=redis_settings.socket_connect_timeout,
    )
    return RedisStore(redis_client), redis_client


def _users_router(
    store: CounterStore,
    limiter_settings: RateLimiterSettings,
    clock: Callable[[], float],
) -> APIRouter:
    limit_users = RateLimitDependency(
        create_rate_limiter(USERS_RATE_LIMIT, store, clock=clock),
        identifier_extractor=IdentifierExtractor(
            api_key_header=limiter_settings.api_key_header,
            per_path=True,
            trust_proxy_headers=limiter_settings.trust_proxy_headers,
        ),
        timeout=limiter_settings.timeout_seconds,
        include_headers_on_success=limiter_settings.include_headers_on_success,
    )
    router = APIRouter(prefix="/api/v1/users", tags=["users"], dependencies=[Depends(limit_users)])

    @router.get("")
    async def list_users() -> dict[str, Any]:
        """List users."""
        return {"users": []}

    @router.get("/{user_id}")
    async def get_user(user_id: str) -> dict[str, Any]:
        """Get a user by ID."""
        return {"id": user_id}

    return router


def create_app(
    settings: Settings | None = None,
    limiter_settings: RateLimiterSettings | None = None,
    store: CounterStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (environment by default)
        limiter_settings: Rate limiter settings (environment by default)
        store: Counter/state store; built from settings when omitted
        clock: Time source shared by all rate limiters

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If the rate limiter settings are invalid
    """
    settings = settings or get_settings()
    limiter_settings = limiter_settings or get_rate_limiter_settings()

    redis_client: RedisClient | None = None
    if store is None:
        store, redis_client = _build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        """Lifespan context manager for startup and shutdown."""
        logger.info(
            "api_starting",
            environment=settings.environment,
            store_backend=type(store).__name__,
        )
        if redis_client is not None:
            await redis_client.connect()

        yield

        if redis_client is not None:
            await redis_client.disconnect()
        logger.info("api_stopped")

    app = FastAPI(
        title="throttlekit API",
        description="REST API template with pluggable rate limiting",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    register_rate_limit_handlers(app)

    if limiter_settings.enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=create_rate_limiter(limiter_settings.to_config(), store, clock=clock),
            identifier_extractor=IdentifierExtractor(
                api_key_header=limiter_settings.api_key_header,
                per_path=limiter_settings.per_path,
                trust_proxy_headers=limiter_settings.trust_proxy_headers,
            ),
            exempt_paths=limiter_settings.exempt_paths,
            timeout=limiter_settings.timeout_seconds,
            include_headers_on_success=limiter_settings.include_headers_on_success,
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check."""
        return {"status": "healthy", "service": settings.service_name, "version": "1.0.0"}

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics."""
        return Response(content=get_metrics(), media_type="text/plain; version=0.0.4")

    @app.get("/api/v1/ping")
    async def ping() -> dict[str, str]:
        """Rate limited liveness probe."""
        return {"message": "pong"}

    app.include_router(_users_router(store, limiter_settings, clock))

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    setup_logging(
        log_level=_settings.log_level,
        json_logs=_settings.json_logs,
        service_name=_settings.service_name,
    )
    uvicorn.run(create_app(_settings), host=_settings.service_host, port=_settings.service_port)
