"""Strategy pipelines. Each one implements ``ModificationPipeline`` and is selected by strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

import structlog

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import ErrorKind
from modification_service.models.modification_models import (
    ChangeType,
    ModificationChange,
    ModificationScope,
    ModificationStrategy,
    ProjectFile,
)
from modification_service.models.records import PatchOutcome, PipelineResult, RelevanceResult, StructuralNode
from modification_service.orchestrator.component_creator import ComponentCreator
from modification_service.orchestrator.relevance_scorer import RelevanceScorer, admit
from modification_service.parsing import dialect_for_path, parse
from modification_service.patching.applier import PatchApplier
from modification_service.session.state_store import SessionState, SessionStateStore

logger = structlog.get_logger(__name__)

CODE_FILE_TYPES = frozenset({"react-component", "module"})


class ModificationPipeline(Protocol):
    approach: str

    async def run(self, request: str, scope: ModificationScope, state: SessionState, project_summary: str) -> PipelineResult:
        ...


class _FileEditPipeline(ABC):
    """Score candidate files, admit the relevant ones, patch them one at a time."""

    strategy: ModificationStrategy
    file_types: frozenset = CODE_FILE_TYPES
    requires_nodes: bool = False

    def __init__(
        self,
        scorer: RelevanceScorer,
        applier: PatchApplier,
        store: SessionStateStore,
        settings: ModificationSettings,
    ):
        self._scorer = scorer
        self._applier = applier
        self._store = store
        self._settings = settings

    @property
    def approach(self) -> str:
        return self.strategy.value

    def _candidates(self, files: dict[str, ProjectFile]) -> list[tuple[ProjectFile, list[StructuralNode]]]:
        candidates = []
        for path in sorted(files):
            project_file = files[path]
            if project_file.file_type not in self.file_types:
                continue
            dialect = dialect_for_path(path)
            nodes = parse(project_file.content, dialect, self._settings.MAX_NODE_DEPTH) if dialect else []
            if self.requires_nodes and not nodes:
                logger.debug("candidate_excluded", file=path, reason="no_structural_nodes")
                continue
            candidates.append((project_file, nodes))
        return candidates

    @abstractmethod
    async def _apply(self, project_file: ProjectFile, result: RelevanceResult, request: str) -> PatchOutcome:
        """Patch one admitted file."""

    async def run(self, request: str, scope: ModificationScope, state: SessionState, project_summary: str) -> PipelineResult:
        candidates = self._candidates(state.file_map)
        if not candidates:
            return PipelineResult(False, self.approach, error_kind=ErrorKind.NO_TARGETS, message="no candidate files")

        results = await self._scorer.score_files(request, candidates, self.strategy, project_summary)
        admitted = admit(results, self._settings.RELEVANCE_ADMISSION_THRESHOLD, require_targets=self.requires_nodes)
        logger.info(
            "files_admitted",
            strategy=self.approach,
            scored=len(results),
            admitted=[r.file_path for r in admitted],
            threshold=self._settings.RELEVANCE_ADMISSION_THRESHOLD,
        )
        if not admitted:
            return PipelineResult(
                False, self.approach, error_kind=ErrorKind.LOW_RELEVANCE, message="no file met the admission threshold"
            )

        selected: list[str] = []
        failures: list[PatchOutcome] = []
        for result in admitted:
            project_file = state.file_map[result.file_path]
            outcome = await self._apply(project_file, result, request)
            await self._store.append_change(state.session_id, self._change_for(outcome, result, request))
            if outcome.success:
                selected.append(outcome.file_path)
                await self._store.set_files(state.session_id, state.file_map)
            else:
                failures.append(outcome)

        if not selected:
            first = failures[0]
            return PipelineResult(
                False, self.approach, error_kind=first.error_kind, message=f"{first.file_path}: {first.message}"
            )
        return PipelineResult(
            True,
            self.approach,
            reasoning="; ".join(f"{r.file_path}: {r.reasoning}" for r in admitted if r.file_path in selected),
            selected_files=selected,
        )

    def _change_for(self, outcome: PatchOutcome, result: RelevanceResult, request: str) -> ModificationChange:
        return ModificationChange(
            type=ChangeType.MODIFIED if outcome.success else ChangeType.FAILED,
            file=outcome.file_path,
            description=request,
            success=outcome.success,
            approach=self.approach,
            details={
                "lines_changed": outcome.lines_changed,
                "repaired": outcome.repaired,
                "score": result.score,
                "reasoning": result.reasoning,
                "error_kind": outcome.error_kind.value if outcome.error_kind else None,
            },
        )


class NodeEditPipeline(_FileEditPipeline):
    strategy = ModificationStrategy.NODE_EDIT
    requires_nodes = True

    async def _apply(self, project_file: ProjectFile, result: RelevanceResult, request: str) -> PatchOutcome:
        return await self._applier.apply_node_edits(project_file, result.target_nodes, request)


class FullFilePipeline(_FileEditPipeline):
    strategy = ModificationStrategy.FULL_FILE
    file_types = CODE_FILE_TYPES | {"stylesheet"}

    async def _apply(self, project_file: ProjectFile, result: RelevanceResult, request: str) -> PatchOutcome:
        return await self._applier.apply_full_file_rewrite(project_file, request, result.reasoning)


class ComponentAdditionPipeline:
    approach = ModificationStrategy.COMPONENT_ADDITION.value

    def __init__(self, creator: ComponentCreator, store: SessionStateStore):
        self._creator = creator
        self._store = store

    async def run(self, request: str, scope: ModificationScope, state: SessionState, project_summary: str) -> PipelineResult:
        outcome = await self._creator.create_component(scope, request, state, project_summary)
        if not outcome.success:
            await self._store.append_change(
                state.session_id,
                ModificationChange(
                    type=ChangeType.FAILED,
                    file=scope.component_name or "(new component)",
                    description=request,
                    success=False,
                    approach=self.approach,
                    details={"error_kind": outcome.error_kind.value if outcome.error_kind else None},
                ),
            )
            return PipelineResult(False, self.approach, error_kind=outcome.error_kind, message=outcome.message)

        await self._store.append_change(
            state.session_id,
            ModificationChange(
                type=ChangeType.CREATED,
                file=outcome.generated_file,
                description=request,
                success=True,
                approach=self.approach,
                details={"component_type": scope.component_type.value if scope.component_type else None},
            ),
        )
        for updated in outcome.updated_files:
            await self._store.append_change(
                state.session_id,
                ModificationChange(
                    type=ChangeType.UPDATED,
                    file=updated,
                    description=f"registered route for {outcome.generated_file}",
                    success=True,
                    approach=self.approach,
                ),
            )
        await self._store.set_files(state.session_id, state.file_map)
        return PipelineResult(
            True,
            self.approach,
            reasoning=outcome.message,
            selected_files=list(outcome.updated_files),
            added_files=[outcome.generated_file],
        )


def strategy_pipelines(*pipelines: ModificationPipeline) -> dict[ModificationStrategy, ModificationPipeline]:
    return {ModificationStrategy(p.approach): p for p in pipelines}
