"""Scope classification: which edit strategy serves a request.

Resolution between the offline heuristic and the reasoning service:

- unusable service reply: heuristic suggestion if confident enough, else NODE_EDIT
- both agree: accepted as is
- they disagree: the service wins; a confident heuristic is noted in the reasoning
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import ReasoningServiceError, ReplyFormatError
from modification_service.models.modification_models import ComponentType, ModificationScope, ModificationStrategy
from modification_service.orchestrator.clients.reasoning import ReasoningService
from modification_service.orchestrator.prompts import SCOPE_CLASSIFIER, render_prompt
from modification_service.orchestrator.scope_heuristics import (
    HeuristicScore,
    component_name_for,
    component_type_for,
    normalize_component_name,
    score_request,
)
from modification_service.utils.json_utils import extract_json_object, preview

logger = structlog.get_logger(__name__)

_STRATEGY_ALIASES = {
    "NODE_EDIT": ModificationStrategy.NODE_EDIT,
    "TARGETED_NODES": ModificationStrategy.NODE_EDIT,
    "FULL_FILE": ModificationStrategy.FULL_FILE,
    "COMPONENT_ADDITION": ModificationStrategy.COMPONENT_ADDITION,
}


def parse_strategy(value: Any) -> Optional[ModificationStrategy]:
    if not isinstance(value, str):
        return None
    return _STRATEGY_ALIASES.get(value.strip().upper().replace("-", "_").replace(" ", "_"))


def parse_component_type(value: Any) -> Optional[ComponentType]:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("page", "route", "screen"):
            return ComponentType.PAGE
        if lowered == "component":
            return ComponentType.COMPONENT
    return None


class ScopeClassifier:
    def __init__(self, reasoning: ReasoningService, settings: ModificationSettings):
        self._reasoning = reasoning
        self._settings = settings

    async def classify(self, request: str, project_summary: str, conversation_context: str = "") -> ModificationScope:
        heuristic = score_request(request)
        logger.info(
            "scope_heuristic_scored",
            strategy=heuristic.strategy.value,
            confidence=heuristic.confidence,
            points=heuristic.points,
        )

        reply = await self._ask_service(request, project_summary, conversation_context, heuristic)
        if reply is None:
            return self._degraded(request, heuristic)

        strategy, data = reply
        reasoning = str(data.get("reasoning") or "").strip() or "No reasoning given"
        if strategy == heuristic.strategy:
            logger.info("scope_resolved", strategy=strategy.value, source="agreement")
        else:
            if heuristic.confidence > self._settings.HEURISTIC_OVERRIDE_NOTE_CONFIDENCE:
                reasoning += (
                    f" (keyword analysis suggested {heuristic.strategy.value} "
                    f"with {heuristic.confidence}% confidence; service decision kept)"
                )
                logger.info(
                    "scope_disagreement_noted",
                    service_strategy=strategy.value,
                    heuristic_strategy=heuristic.strategy.value,
                    heuristic_confidence=heuristic.confidence,
                )
            logger.info("scope_resolved", strategy=strategy.value, source="service")

        return self._build_scope(
            strategy,
            reasoning,
            request,
            heuristic,
            name_hint=data.get("componentName") or data.get("component_name"),
            type_hint=data.get("componentType") or data.get("component_type"),
        )

    def component_scope(self, request: str, reasoning: str) -> ModificationScope:
        """COMPONENT_ADDITION scope derived offline, used by the creation fallback."""
        return self._build_scope(ModificationStrategy.COMPONENT_ADDITION, reasoning, request, score_request(request))

    async def _ask_service(
        self,
        request: str,
        project_summary: str,
        conversation_context: str,
        heuristic: HeuristicScore,
    ) -> Optional[tuple[ModificationStrategy, dict]]:
        prompt = render_prompt(
            SCOPE_CLASSIFIER,
            request=request,
            project_summary=project_summary or "(unavailable)",
            conversation_context=conversation_context or "(none)",
            heuristic_strategy=heuristic.strategy.value,
            heuristic_confidence=heuristic.confidence,
        )
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.CLASSIFY_MAX_OUTPUT, self._settings.ANALYSIS_TEMPERATURE
            )
        except ReasoningServiceError as e:
            logger.warning("scope_service_unavailable", error=str(e))
            return None

        try:
            data = extract_json_object(raw)
        except ReplyFormatError as e:
            logger.warning("scope_reply_malformed", error=str(e), raw_reply=preview(raw))
            return None

        strategy = parse_strategy(data.get("strategy", data.get("scope")))
        if strategy is None:
            logger.warning("scope_reply_invalid_strategy", raw_reply=preview(raw))
            return None
        return strategy, data

    def _degraded(self, request: str, heuristic: HeuristicScore) -> ModificationScope:
        if heuristic.confidence > self._settings.HEURISTIC_FALLBACK_CONFIDENCE:
            reasoning = f"Service reply unusable; using keyword analysis: {heuristic.reasoning}"
            strategy = heuristic.strategy
        else:
            reasoning = (
                "Service reply unusable and keyword analysis not confident "
                f"({heuristic.confidence}%); defaulting to the least destructive strategy"
            )
            strategy = ModificationStrategy.NODE_EDIT
        logger.info("scope_resolved", strategy=strategy.value, source="degraded", heuristic_confidence=heuristic.confidence)
        return self._build_scope(strategy, reasoning, request, heuristic)

    def _build_scope(
        self,
        strategy: ModificationStrategy,
        reasoning: str,
        request: str,
        heuristic: HeuristicScore,
        name_hint: Any = None,
        type_hint: Any = None,
    ) -> ModificationScope:
        if strategy != ModificationStrategy.COMPONENT_ADDITION:
            return ModificationScope(strategy=strategy, reasoning=reasoning, heuristic_confidence=heuristic.confidence)

        component_type = parse_component_type(type_hint) or component_type_for(request)
        name = normalize_component_name(name_hint if isinstance(name_hint, str) else None)
        return ModificationScope(
            strategy=strategy,
            reasoning=reasoning,
            component_name=name or component_name_for(request, component_type),
            component_type=component_type,
            heuristic_confidence=heuristic.confidence,
        )
