"""
Reasoning service (LLM) connection settings.
"""

from functools import lru_cache
from pydantic import Field

from .base_config import BaseConfig


class LlmConfig(BaseConfig):
	"""
	Settings for the OpenAI-compatible endpoint used as the reasoning service.

	Environment variables:
	- OAI_KEY: API key for the endpoint
	- OAI_BASE_URL: Endpoint base URL (e.g., https://<resource>.openai.azure.com)
	- OAI_API_VERSION: Azure OpenAI API version
	- OAI_MODEL: Chat deployment used for generation (node edits, rewrites, new components)
	- OAI_MODEL_FAST: Chat deployment used for classification and relevance scoring
	- LLM_TEMPERATURE: Default sampling temperature
	- LLM_TIMEOUT_SEC: Deadline applied to every single reasoning call
	"""

	OAI_KEY: str | None = Field(default=None, description="OpenAI API key")
	OAI_BASE_URL: str | None = Field(default=None, description="OpenAI-compatible API base URL")
	OAI_API_VERSION: str | None = Field(default=None, description="Azure OpenAI API version")
	OAI_MODEL: str = Field(default="gpt-4o", description="Chat model id for generation tasks")
	OAI_MODEL_FAST: str = Field(default="gpt-4o-mini", description="Chat model id for classification and scoring")

	LLM_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=2.0, description="Default temperature for LLM requests")
	LLM_TIMEOUT_SEC: float = Field(default=60.0, gt=0.0, description="Deadline for a single LLM request in seconds")


@lru_cache()
def get_llm_config() -> LlmConfig:
	"""Return cached LLM config."""
	return LlmConfig()
