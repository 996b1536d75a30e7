"""
Redis configuration settings for the session cache.
"""

from functools import lru_cache
from pydantic import Field
from .base_config import BaseConfig


class RedisSettings(BaseConfig):
    """
    Connection settings for the key-value cache backing session state.
    """
    REDIS_URL: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_MAX_CONNECTIONS: int = Field(default=10, description="Maximum number of Redis connections")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=2.0, description="Socket connection timeout in seconds")
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, description="Socket timeout in seconds")


@lru_cache()
def get_redis_settings() -> RedisSettings:
    """Return cached Redis settings."""
    return RedisSettings()
