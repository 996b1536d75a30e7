"""Chat model factory for the reasoning service.

Uses ``@lru_cache`` to avoid repeated client construction. All configuration is
loaded from ``get_llm_config()``.
"""

from functools import lru_cache
import structlog
from langchain_openai import AzureChatOpenAI

from modification_service.configuration.llm_config import get_llm_config

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=2)
def create_llm(use_fast_model: bool = False) -> AzureChatOpenAI:
    """Create a cached AzureChatOpenAI instance.

    Args:
        use_fast_model: If True, uses OAI_MODEL_FAST (classification, relevance).
                        If False, uses OAI_MODEL (code generation).

    Raises:
        ValueError: When the endpoint or key is not configured.
    """
    cfg = get_llm_config()
    model = cfg.OAI_MODEL_FAST if use_fast_model else cfg.OAI_MODEL

    if not cfg.OAI_KEY:
        raise ValueError("OAI_KEY not configured. Set OAI_KEY environment variable for Azure OpenAI access.")
    if not cfg.OAI_BASE_URL:
        raise ValueError(
            "OAI_BASE_URL not configured. Set OAI_BASE_URL environment variable "
            "for Azure OpenAI endpoint (e.g., https://<resource>.openai.azure.com)."
        )

    client = AzureChatOpenAI(
        azure_endpoint=cfg.OAI_BASE_URL,
        deployment_name=model,
        api_key=cfg.OAI_KEY,
        api_version=cfg.OAI_API_VERSION or "2024-02-15-preview",
        temperature=cfg.LLM_TEMPERATURE,
        max_retries=1,
    )

    logger.debug("llm_client_created", model=model, use_fast_model=use_fast_model, endpoint=cfg.OAI_BASE_URL)
    return client
