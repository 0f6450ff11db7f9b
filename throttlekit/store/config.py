"""
Settings for the Redis counter/state store.

Either set REDIS_URL, or the individual REDIS_HOST / REDIS_PORT / REDIS_DB /
REDIS_PASSWORD components. Timeouts are kept short: the rate limiter runs on
every request and fails closed, so a slow Redis must not hold requests.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisStoreSettings(BaseSettings):
    """Connection and pool settings for the Redis store."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REDIS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Connection
    url: str | None = Field(None, description="Full connection URL; overrides the components")
    host: str = Field("localhost", description="Redis host")
    port: int = Field(6379, ge=1, le=65535, description="Redis port")
    db: int = Field(0, ge=0, le=15, description="Redis database number")
    password: str | None = Field(None, description="Redis password")

    # Pool and timeouts
    max_connections: int = Field(50, ge=1, le=500, description="Pool size")
    socket_timeout: float = Field(1.0, ge=0.05, description="Per-command timeout in seconds")
    socket_connect_timeout: float = Field(2.0, ge=0.05, description="Connect timeout in seconds")
    decode_responses: bool = Field(True, description="Decode replies to str")

    @property
    def connection_url(self) -> str:
        """URL built from host, port, db and password."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"

    def get_effective_url(self) -> str:
        """
        Resolve the URL to connect to.

        Returns:
            REDIS_URL when set, otherwise the URL built from components
        """
        return self.url or self.connection_url


@lru_cache
def get_redis_store_settings() -> RedisStoreSettings:
    """
    Get cached Redis store settings instance.

    Returns:
        RedisStoreSettings: Cached settings instance
    """
    return RedisStoreSettings()
