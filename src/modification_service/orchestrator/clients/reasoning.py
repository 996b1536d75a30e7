"""Reasoning service client.

The engine only needs text in and text out. ``LangChainReasoningService`` puts a
deadline on every call so a stalled request becomes an ordinary
``ReasoningServiceError`` that the fallback chain already handles.
"""

import asyncio
from typing import Callable, Protocol

import structlog

from modification_service.errors import ReasoningServiceError
from modification_service.utils.json_utils import extract_string_content
from modification_service.utils.llm_client_factory import create_llm

logger = structlog.get_logger(__name__)


class ReasoningService(Protocol):
    async def complete(self, prompt_text: str, max_output_size: int, temperature: float) -> str:
        ...


class LangChainReasoningService:
    def __init__(self, timeout_sec: float, use_fast_model: bool = False, llm_factory: Callable = create_llm):
        self._timeout_sec = timeout_sec
        self._use_fast_model = use_fast_model
        self._llm_factory = llm_factory

    async def complete(self, prompt_text: str, max_output_size: int, temperature: float) -> str:
        try:
            llm = self._llm_factory(use_fast_model=self._use_fast_model)
            runnable = llm.bind(max_tokens=max_output_size, temperature=temperature)
            reply = await asyncio.wait_for(runnable.ainvoke(prompt_text), timeout=self._timeout_sec)
        except asyncio.TimeoutError as e:
            logger.warning("reasoning_call_timed_out", timeout_sec=self._timeout_sec, prompt_chars=len(prompt_text))
            raise ReasoningServiceError(f"reasoning call exceeded {self._timeout_sec}s") from e
        except Exception as e:
            logger.warning("reasoning_call_failed", error=str(e), error_type=type(e).__name__)
            raise ReasoningServiceError(str(e)) from e

        text = extract_string_content(reply).strip()
        if not text:
            raise ReasoningServiceError("reasoning service returned an empty reply")
        logger.debug("reasoning_call_completed", prompt_chars=len(prompt_text), reply_chars=len(text))
        return text

