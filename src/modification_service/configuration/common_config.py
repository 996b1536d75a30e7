"""
Composed configuration for the modification service.
"""
from functools import lru_cache
from pydantic import Field
from dotenv import load_dotenv
from .base_config import BaseConfig
from .llm_config import LlmConfig
from .modification_config import ModificationSettings
from .postgres_config import PostgresSettings
from .redis_config import RedisSettings

# Explicitly load .env file at the module level.
load_dotenv()


class AppSettings(BaseConfig):
    """
    Holds the composed settings for the entire application.
    """

    API_PORT: int = Field(default=8000, description="The port the API will run on")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    redis: RedisSettings = Field(default_factory=RedisSettings)
    llm: LlmConfig = Field(default_factory=LlmConfig)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    modification: ModificationSettings = Field(default_factory=ModificationSettings)


@lru_cache()
def get_app_settings() -> AppSettings:
    """
    Creates a cached instance of AppSettings.
    This ensures that all settings are loaded only once and reused.
    """
    return AppSettings()
