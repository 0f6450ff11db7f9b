"""
Configuration for rate limiting.

Defines the strategy selector model and environment-driven defaults.
"""

from datetime import timedelta
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from throttlekit.exceptions import ConfigurationError

# Paths, with their subpaths, that bypass the middleware by default.
DEFAULT_EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json", "/metrics")


class RateLimitStrategy(str, Enum):
    """Available rate limiting algorithms."""

    FIXED_WINDOW = "fixed_window"
    SLIDING_WINDOW = "sliding_window"
    TOKEN_BUCKET = "token_bucket"
    LEAKY_BUCKET = "leaky_bucket"


class RateLimitConfig(BaseModel):
    """
    Strategy choice plus its numeric parameters.

    Windowed strategies use ``limit`` and ``window``. Token bucket uses
    ``rate`` and ``burst`` with ``window`` as the idle-state expiry; leaky
    bucket uses ``burst`` as capacity, ``rate`` as leak rate and ``window``
    as the idle-state expiry.
    """

    model_config = ConfigDict(frozen=True)

    strategy: RateLimitStrategy = Field(
        RateLimitStrategy.FIXED_WINDOW, description="Rate limiting algorithm"
    )
    limit: int = Field(60, ge=1, description="Requests allowed per window")
    window: timedelta = Field(
        timedelta(minutes=1), description="Window length or bucket state expiry"
    )
    burst: int = Field(10, ge=1, description="Bucket capacity")
    rate: float = Field(1.0, gt=0, description="Tokens added or units leaked per second")

    @field_validator("window")
    @classmethod
    def _window_positive(cls, value: timedelta) -> timedelta:
        if value.total_seconds() <= 0:
            raise ValueError("window must be positive")
        return value

    @property
    def window_seconds(self) -> float:
        """Window length in seconds."""
        return self.window.total_seconds()

    @classmethod
    def build(cls, **values: object) -> "RateLimitConfig":
        """
        Validate raw values into a config, failing fast on bad input.

        Args:
            **values: Field values (strategy name, limit, window, burst, rate)

        Returns:
            Validated config

        Raises:
            ConfigurationError: If a value is unknown or out of range
        """
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(f"Invalid rate limit configuration: {e}", key=key) from e


class RateLimiterSettings(BaseSettings):
    """Settings for the rate limiting middleware."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RATE_LIMITER_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Apply the application-wide rate limit middleware",
    )

    # Strategy selection
    strategy: str = Field(
        default=RateLimitStrategy.FIXED_WINDOW.value,
        description="fixed_window, sliding_window, token_bucket or leaky_bucket",
    )

    limit: int = Field(
        default=100,
        description="Requests per window (windowed strategies)",
    )

    window_seconds: float = Field(
        default=60.0,
        description="Window length, or idle bucket state expiry, in seconds",
    )

    burst: int = Field(
        default=20,
        description="Bucket capacity (bucket strategies)",
    )

    rate: float = Field(
        default=10.0,
        description="Tokens per second or leak rate per second (bucket strategies)",
    )

    # Identifier policy
    per_path: bool = Field(
        default=False,
        description="Partition limits by request path",
    )

    api_key_header: str = Field(
        default="X-API-Key",
        description="Header carrying the caller credential",
    )

    trust_proxy_headers: bool = Field(
        default=True,
        description="Resolve client IP from X-Forwarded-For / X-Real-IP",
    )

    # Adapter behavior
    timeout_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Deadline for each rate limit store round trip",
    )

    include_headers_on_success: bool = Field(
        default=False,
        description="Attach X-RateLimit-* headers to allowed responses",
    )

    exempt_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXEMPT_PATHS),
        description="Paths, with their subpaths, that bypass the middleware",
    )

    def to_config(self) -> RateLimitConfig:
        """
        Convert the settings into a validated strategy config.

        Returns:
            RateLimitConfig

        Raises:
            ConfigurationError: If the strategy name or a parameter is invalid
        """
        return RateLimitConfig.build(
            strategy=self.strategy,
            limit=self.limit,
            window=timedelta(seconds=self.window_seconds),
            burst=self.burst,
            rate=self.rate,
        )


@lru_cache
def get_rate_limiter_settings() -> RateLimiterSettings:
    """
    Get cached rate limiter settings instance.

    Returns:
        RateLimiterSettings: Cached settings instance
    """
    return RateLimiterSettings()
