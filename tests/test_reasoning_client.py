import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from modification_service.errors import ReasoningServiceError
from modification_service.orchestrator.clients.reasoning import LangChainReasoningService
from modification_service.utils.llm_client_factory import create_llm


def _factory_returning(runnable):
    llm = MagicMock()
    llm.bind.return_value = runnable
    factory = MagicMock(return_value=llm)
    return factory, llm


@pytest.mark.asyncio
async def test_complete_binds_budget_and_returns_text():
    runnable = MagicMock()
    runnable.ainvoke = AsyncMock(return_value=AIMessage(content="  {\"strategy\": \"NODE_EDIT\"}  "))
    factory, llm = _factory_returning(runnable)
    service = LangChainReasoningService(timeout_sec=5, use_fast_model=True, llm_factory=factory)

    reply = await service.complete("classify this", 400, 0.0)

    assert reply == '{"strategy": "NODE_EDIT"}'
    factory.assert_called_once_with(use_fast_model=True)
    llm.bind.assert_called_once_with(max_tokens=400, temperature=0.0)
    runnable.ainvoke.assert_awaited_once_with("classify this")


@pytest.mark.asyncio
async def test_deadline_becomes_service_error():
    async def stall(_):
        await asyncio.sleep(1)

    runnable = MagicMock()
    runnable.ainvoke = stall
    factory, _ = _factory_returning(runnable)
    service = LangChainReasoningService(timeout_sec=0.01, llm_factory=factory)

    with pytest.raises(ReasoningServiceError, match="exceeded"):
        await service.complete("slow", 10, 0.0)


@pytest.mark.asyncio
async def test_transport_failure_becomes_service_error():
    runnable = MagicMock()
    runnable.ainvoke = AsyncMock(side_effect=ConnectionError("refused"))
    factory, _ = _factory_returning(runnable)

    with pytest.raises(ReasoningServiceError, match="refused"):
        await LangChainReasoningService(timeout_sec=5, llm_factory=factory).complete("x", 10, 0.0)


@pytest.mark.asyncio
async def test_missing_configuration_becomes_service_error():
    factory = MagicMock(side_effect=ValueError("OAI_KEY not configured"))

    with pytest.raises(ReasoningServiceError, match="OAI_KEY"):
        await LangChainReasoningService(timeout_sec=5, llm_factory=factory).complete("x", 10, 0.0)


@pytest.mark.asyncio
async def test_empty_reply_is_an_error():
    runnable = MagicMock()
    runnable.ainvoke = AsyncMock(return_value=AIMessage(content="   "))
    factory, _ = _factory_returning(runnable)

    with pytest.raises(ReasoningServiceError, match="empty"):
        await LangChainReasoningService(timeout_sec=5, llm_factory=factory).complete("x", 10, 0.0)


@patch("modification_service.utils.llm_client_factory.AzureChatOpenAI")
@patch("modification_service.utils.llm_client_factory.get_llm_config")
def test_create_llm_selects_deployment(mock_get_config, mock_chat):
    """Fast and main models map to their configured deployments."""
    create_llm.cache_clear()
    cfg = MagicMock(OAI_KEY="k", OAI_BASE_URL="https://example.openai.azure.com", OAI_API_VERSION=None,
                    OAI_MODEL="main", OAI_MODEL_FAST="fast", LLM_TEMPERATURE=0.2)
    mock_get_config.return_value = cfg

    create_llm(use_fast_model=True)
    create_llm(use_fast_model=False)
    create_llm(use_fast_model=True)

    deployments = [c.kwargs["deployment_name"] for c in mock_chat.call_args_list]
    assert deployments == ["fast", "main"]
    create_llm.cache_clear()


@patch("modification_service.utils.llm_client_factory.get_llm_config")
def test_create_llm_requires_key(mock_get_config):
    create_llm.cache_clear()
    mock_get_config.return_value = MagicMock(OAI_KEY=None, OAI_BASE_URL="https://x", OAI_MODEL="m", OAI_MODEL_FAST="f")

    with pytest.raises(ValueError, match="OAI_KEY"):
        create_llm()
