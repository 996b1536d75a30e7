"""Top-level driver and fallback chain.

CLASSIFYING -> EXECUTING(strategy) -> SUCCEEDED | ESCALATING -> ... -> TERMINAL

Escalation order is fixed: the classified strategy, then component creation with an
offline-derived scope, then the emergency stub. Exceptions raised by a stage end
that stage; they never leave ``process``.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Mapping

import structlog

from modification_service.errors import ErrorKind
from modification_service.models.modification_models import (
    ConversationRecord,
    ModificationRequest,
    ModificationResult,
    ModificationScope,
    ModificationStrategy,
)
from modification_service.models.records import PipelineResult
from modification_service.orchestrator.pipelines import ModificationPipeline
from modification_service.orchestrator.project_summary import build_project_summary
from modification_service.orchestrator.scope_classifier import ScopeClassifier
from modification_service.persistence.conversation_store import ConversationStore
from modification_service.session.locks import SessionLockRegistry
from modification_service.session.state_store import SessionState, SessionStateStore

logger = structlog.get_logger(__name__)


class OrchestratorState(str, Enum):
    CLASSIFYING = "CLASSIFYING"
    EXECUTING = "EXECUTING"
    ESCALATING = "ESCALATING"
    SUCCEEDED = "SUCCEEDED"
    TERMINAL = "TERMINAL"


class ModificationOrchestrator:
    def __init__(
        self,
        classifier: ScopeClassifier,
        pipelines: Mapping[ModificationStrategy, ModificationPipeline],
        emergency: ModificationPipeline,
        store: SessionStateStore,
        conversation_store: ConversationStore,
        locks: SessionLockRegistry | None = None,
    ):
        missing = set(ModificationStrategy) - set(pipelines)
        if missing:
            raise ValueError(f"no pipeline for {sorted(s.value for s in missing)}")
        self._classifier = classifier
        self._pipelines = dict(pipelines)
        self._emergency = emergency
        self._store = store
        self._conversation_store = conversation_store
        self._locks = locks or SessionLockRegistry()

    async def clear_session(self, session_id: str) -> None:
        """Drop the cached state of a session once its in-flight request, if any, is done."""
        async with self._locks.hold(session_id):
            await self._store.clear_session(session_id)

    async def process(self, request: ModificationRequest) -> ModificationResult:
        structlog.contextvars.bind_contextvars(session_id=request.session_id, request_id=uuid.uuid4().hex[:12])
        try:
            # One request per session at a time: the file map is read-modify-write state
            async with self._locks.hold(request.session_id):
                result = await self._process_locked(request)
        finally:
            structlog.contextvars.unbind_contextvars("session_id", "request_id")
        return result

    async def _process_locked(self, request: ModificationRequest) -> ModificationResult:
        state = await self._store.load_state(request.session_id)
        project_summary = build_project_summary(state.file_map)
        context = await self._conversation_context(request)

        self._transition(OrchestratorState.CLASSIFYING)
        scope = await self._classify(request.prompt, project_summary, context)

        attempts: list[PipelineResult] = []
        for index, (pipeline, stage_scope) in enumerate(self._stages(request.prompt, scope)):
            self._transition(
                OrchestratorState.EXECUTING if index == 0 else OrchestratorState.ESCALATING,
                approach=pipeline.approach,
            )
            result = await self._run_stage(pipeline, request.prompt, stage_scope, state, project_summary)
            attempts.append(result)
            if result.success:
                self._transition(OrchestratorState.SUCCEEDED, approach=result.approach)
                break
            logger.warning(
                "stage_failed",
                approach=result.approach,
                error_kind=result.error_kind.value if result.error_kind else None,
                message=result.message,
            )

        final = attempts[-1]
        self._transition(OrchestratorState.TERMINAL, approach=final.approach, success=final.success)
        result = ModificationResult(
            success=final.success,
            selected_files=_merged(a.selected_files for a in attempts),
            added_files=_merged(a.added_files for a in attempts),
            approach=final.approach,
            reasoning=self._reasoning(scope, attempts),
            modification_summary=await self._store.get_recent_changes_summary(request.session_id),
            error=None if final.success else final.message or "all stages failed",
        )
        await self._record(request, result)
        return result

    def _stages(self, prompt: str, scope: ModificationScope) -> list[tuple[ModificationPipeline, ModificationScope]]:
        fallback_scope = self._classifier.component_scope(prompt, f"Fallback after {scope.strategy.value} did not succeed")
        return [
            (self._pipelines[scope.strategy], scope),
            (self._pipelines[ModificationStrategy.COMPONENT_ADDITION], fallback_scope),
            (self._emergency, scope),
        ]

    async def _classify(self, prompt: str, project_summary: str, context: str) -> ModificationScope:
        try:
            return await self._classifier.classify(prompt, project_summary, context)
        except Exception as e:
            logger.exception("classification_crashed", error=str(e))
            return ModificationScope(
                strategy=ModificationStrategy.NODE_EDIT,
                reasoning="Classification failed; defaulting to the least destructive strategy",
            )

    async def _run_stage(
        self,
        pipeline: ModificationPipeline,
        prompt: str,
        scope: ModificationScope,
        state: SessionState,
        project_summary: str,
    ) -> PipelineResult:
        try:
            return await pipeline.run(prompt, scope, state, project_summary)
        except Exception as e:
            logger.exception("stage_crashed", approach=pipeline.approach, error=str(e))
            return PipelineResult(False, pipeline.approach, error_kind=ErrorKind.PIPELINE_FAILED, message=str(e))

    async def _conversation_context(self, request: ModificationRequest) -> str:
        parts = [await self._store.get_recent_changes_summary(request.session_id)]
        earlier = await self._store.get_session_context(request.session_id)
        if earlier is None and request.project_id:
            try:
                earlier = await self._conversation_store.fetch_latest_summary(request.project_id)
            except Exception as e:
                logger.warning("conversation_summary_unavailable", project_id=request.project_id, error=str(e))
            if earlier:
                await self._store.set_session_context(request.session_id, earlier)
        if earlier:
            parts.append(f"Earlier conversation summary:\n{earlier}")
        return "\n\n".join(parts)

    async def _record(self, request: ModificationRequest, result: ModificationResult) -> None:
        record = ConversationRecord(
            session_id=request.session_id,
            project_id=request.project_id,
            prompt=request.prompt,
            approach=result.approach,
            success=result.success,
            selected_files=result.selected_files,
            added_files=result.added_files,
            reasoning=result.reasoning,
            error=result.error,
        )
        try:
            await self._conversation_store.append_record(record)
        except Exception as e:
            logger.warning("conversation_record_failed", error=str(e))

    @staticmethod
    def _reasoning(scope: ModificationScope, attempts: list[PipelineResult]) -> str:
        parts = [f"{scope.strategy.value}: {scope.reasoning}"]
        for failed in attempts[:-1]:
            parts.append(f"{failed.approach} failed ({failed.message or 'no result'}); escalated")
        if attempts[-1].reasoning:
            parts.append(attempts[-1].reasoning)
        return " | ".join(parts)

    @staticmethod
    def _transition(state: OrchestratorState, **details) -> None:
        logger.info("orchestrator_state", state=state.value, **details)


def _merged(groups) -> list[str]:
    merged: list[str] = []
    for group in groups:
        for item in group:
            if item not in merged:
                merged.append(item)
    return merged
