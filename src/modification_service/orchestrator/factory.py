"""Wiring of the orchestrator from settings."""

from typing import Optional

from modification_service.configuration.common_config import AppSettings
from modification_service.orchestrator.clients.reasoning import LangChainReasoningService, ReasoningService
from modification_service.orchestrator.component_creator import ComponentCreator
from modification_service.orchestrator.emergency import EmergencyStubWriter
from modification_service.orchestrator.orchestrator import ModificationOrchestrator
from modification_service.orchestrator.pipelines import (
    ComponentAdditionPipeline,
    FullFilePipeline,
    NodeEditPipeline,
    strategy_pipelines,
)
from modification_service.orchestrator.relevance_scorer import RelevanceScorer
from modification_service.orchestrator.scope_classifier import ScopeClassifier
from modification_service.patching.applier import PatchApplier, PatchPolicy
from modification_service.patching.path_policy import PathPolicy
from modification_service.persistence.conversation_store import ConversationStore, NullConversationStore
from modification_service.session.cache import KeyValueCache
from modification_service.session.locks import SessionLockRegistry
from modification_service.session.project_scanner import ProjectScanner
from modification_service.session.state_store import SessionStateStore


def build_orchestrator(
    settings: AppSettings,
    cache: KeyValueCache,
    analysis: Optional[ReasoningService] = None,
    generation: Optional[ReasoningService] = None,
    conversation_store: Optional[ConversationStore] = None,
) -> ModificationOrchestrator:
    """Assemble the engine. Analysis calls go to the fast model, generation to the main one."""
    policy_settings = settings.modification
    analysis = analysis or LangChainReasoningService(settings.llm.LLM_TIMEOUT_SEC, use_fast_model=True)
    generation = generation or LangChainReasoningService(settings.llm.LLM_TIMEOUT_SEC)

    store = SessionStateStore(cache, ProjectScanner(policy_settings.PROJECT_ROOT), policy_settings)
    path_policy = PathPolicy(policy_settings.PROJECT_ROOT, restrict_to_src=policy_settings.RESTRICT_WRITES_TO_SRC)
    applier = PatchApplier(generation, PatchPolicy(path_policy=path_policy), policy_settings)
    scorer = RelevanceScorer(analysis, policy_settings)

    pipelines = strategy_pipelines(
        NodeEditPipeline(scorer, applier, store, policy_settings),
        FullFilePipeline(scorer, applier, store, policy_settings),
        ComponentAdditionPipeline(ComponentCreator(generation, applier, policy_settings), store),
    )
    return ModificationOrchestrator(
        classifier=ScopeClassifier(analysis, policy_settings),
        pipelines=pipelines,
        emergency=EmergencyStubWriter(applier, store),
        store=store,
        conversation_store=conversation_store or NullConversationStore(),
        locks=SessionLockRegistry(),
    )
