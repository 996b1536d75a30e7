"""
PostgreSQL settings for the conversation store.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from .base_config import BaseConfig


class PostgresSettings(BaseConfig):
    """
    Defines the PostgreSQL settings used to persist conversation summaries and modification records.
    """
    POSTGRES_ENABLED: bool = Field(default=False, description="Whether the conversation store is backed by PostgreSQL")
    POSTGRES_HOST: str = Field(default="localhost", description="PostgreSQL host")
    POSTGRES_PORT: int = Field(default=5432, description="PostgreSQL port")
    POSTGRES_USER: str = Field(default="postgres", description="PostgreSQL user")
    POSTGRES_PASSWORD: str = Field(default="postgres", description="PostgreSQL password")
    POSTGRES_DB: str = Field(default="modifications", description="PostgreSQL database name")
    POSTGRES_POOL_SIZE: int = Field(default=5, description="PostgreSQL connection pool size")
    POSTGRES_MAX_OVERFLOW: int = Field(default=10, description="PostgreSQL connection pool max overflow")
    POSTGRES_POOL_TIMEOUT: int = Field(default=30, description="PostgreSQL connection pool timeout in seconds")
    POSTGRES_POOL_RECYCLE: int = Field(default=1800, description="PostgreSQL connection pool recycle time in seconds")

    @field_validator('POSTGRES_PORT')
    @classmethod
    def validate_port(cls, v):
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Construct the async database URL from individual components."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


@lru_cache()
def get_postgres_settings() -> PostgresSettings:
    """
    Returns a cached instance of the PostgresSettings.
    """
    return PostgresSettings()
