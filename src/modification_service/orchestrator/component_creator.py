"""New page/component creation, including route registration for pages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import structlog

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import ErrorKind, ReasoningServiceError, ReplyFormatError
from modification_service.models.modification_models import ComponentType, ModificationScope, ProjectFile
from modification_service.orchestrator.clients.reasoning import ReasoningService
from modification_service.orchestrator.prompts import COMPONENT_GENERATOR, ROUTE_UPDATER, render_prompt
from modification_service.orchestrator.scope_heuristics import component_name_for, component_type_for
from modification_service.parsing import is_parseable
from modification_service.patching.applier import PatchApplier
from modification_service.patching.routing import (
    has_routes_block,
    import_line_for,
    import_path_for,
    insert_route,
    route_line_for,
    route_path_for,
    validate_route_update,
)
from modification_service.session.project_scanner import ROOT_COMPOSITION_NAMES, build_project_file
from modification_service.session.state_store import SessionState
from modification_service.utils.json_utils import extract_code_block, preview

logger = structlog.get_logger(__name__)


@dataclass
class ComponentCreationOutcome:
    success: bool
    generated_file: Optional[str] = None
    updated_files: list[str] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    message: str = ""


def source_base(project_root: Path) -> str:
    return "src/" if (project_root / "src").is_dir() else ""


def unique_component_path(
    project_root: Path,
    files: Mapping[str, ProjectFile],
    folder: str,
    name: str,
) -> tuple[str, str]:
    """``(name, relative_path)`` for a ``.tsx`` file that exists neither on disk nor in ``files``."""
    base = source_base(project_root)
    candidate, suffix = name, 2
    while True:
        relative = f"{base}{folder}/{candidate}.tsx"
        if relative not in files and not (project_root / relative).exists():
            return candidate, relative
        candidate = f"{name}{suffix}"
        suffix += 1


def root_composition_file(files: Mapping[str, ProjectFile]) -> Optional[ProjectFile]:
    """The root component that declares the route table, if any."""
    candidates = sorted(
        (f for f in files.values() if Path(f.relative_path).name in ROOT_COMPOSITION_NAMES),
        key=lambda f: (not f.relative_path.startswith("src/"), f.relative_path),
    )
    for project_file in candidates:
        if has_routes_block(project_file.content):
            return project_file
    return None


def generated_content_problems(content: str, name: str) -> list[str]:
    problems = []
    if not is_parseable(content, "tsx"):
        problems.append("does not parse")
    if not re.search(r"^\s*export\b", content, re.MULTILINE):
        problems.append("has no export")
    if not re.search(rf"(?<![\w$]){re.escape(name)}(?![\w$])", content):
        problems.append(f"does not declare {name}")
    return problems


class ComponentCreator:
    def __init__(self, reasoning: ReasoningService, applier: PatchApplier, settings: ModificationSettings):
        self._reasoning = reasoning
        self._applier = applier
        self._settings = settings

    @property
    def project_root(self) -> Path:
        return self._applier.path_policy.project_root

    async def create_component(
        self,
        scope: ModificationScope,
        request: str,
        state: SessionState,
        project_summary: str = "",
    ) -> ComponentCreationOutcome:
        component_type = scope.component_type or component_type_for(request)
        folder = "pages" if component_type == ComponentType.PAGE else "components"
        name, relative = unique_component_path(
            self.project_root,
            state.file_map,
            folder,
            scope.component_name or component_name_for(request, component_type),
        )

        prompt = render_prompt(
            COMPONENT_GENERATOR,
            component_type=component_type.value,
            component_name=name,
            target_path=relative,
            request=request,
            project_summary=project_summary or "(unavailable)",
        )
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.COMPONENT_MAX_OUTPUT, self._settings.GENERATION_TEMPERATURE
            )
            _, content = extract_code_block(raw)
        except ReasoningServiceError as e:
            return ComponentCreationOutcome(False, error_kind=ErrorKind.SERVICE_UNAVAILABLE, message=str(e))
        except ReplyFormatError as e:
            logger.warning("component_reply_malformed", component=name, raw_reply=preview(e.raw_reply))
            return ComponentCreationOutcome(False, error_kind=ErrorKind.REPLY_MALFORMED, message=str(e))

        problems = generated_content_problems(content, name)
        if problems:
            logger.warning("generated_component_rejected", component=name, problems=problems)
            return ComponentCreationOutcome(
                False, error_kind=ErrorKind.VALIDATION_FAILED, message=f"generated {name} " + ", ".join(problems)
            )

        written = await self._applier.write_new_file(relative, content)
        if not written.success:
            return ComponentCreationOutcome(False, error_kind=written.error_kind, message=written.message)
        state.file_map[relative] = build_project_file(self.project_root, relative, content)

        outcome = ComponentCreationOutcome(True, generated_file=relative, message=f"created {component_type.value} {name}")
        if component_type == ComponentType.PAGE:
            routed = await self._register_route(state, name, relative)
            if routed:
                outcome.updated_files.append(routed)
            else:
                outcome.message += "; route table left unchanged"
        return outcome

    async def _register_route(self, state: SessionState, name: str, page_path: str) -> Optional[str]:
        root = root_composition_file(state.file_map)
        if root is None:
            logger.info("route_registration_skipped", page=page_path, reason="no_routes_block")
            return None

        import_line = import_line_for(name, import_path_for(root.relative_path, page_path))
        route_line = route_line_for(name, route_path_for(name))
        candidate = await self._ask_route_update(root, name, import_line, route_line)
        if candidate is None:
            candidate = insert_route(root.content, import_line, route_line)
            logger.info("route_inserted_deterministically", root=root.relative_path, page=page_path)
        if candidate is None:
            return None

        outcome = await self._applier.write_validated(root, candidate)
        if not outcome.success:
            logger.warning("route_registration_failed", root=root.relative_path, error=outcome.message)
            return None
        return root.relative_path

    async def _ask_route_update(self, root: ProjectFile, name: str, import_line: str, route_line: str) -> Optional[str]:
        prompt = render_prompt(
            ROUTE_UPDATER,
            import_line=import_line,
            route_line=route_line,
            file_path=root.relative_path,
            content=root.content,
        )
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.FULL_FILE_MAX_OUTPUT, self._settings.GENERATION_TEMPERATURE
            )
            _, candidate = extract_code_block(raw)
        except (ReasoningServiceError, ReplyFormatError) as e:
            logger.info("route_update_reply_unusable", root=root.relative_path, error=str(e))
            return None

        if not root.content.endswith("\n"):
            candidate = candidate.rstrip("\n")
        if not validate_route_update(root.content, candidate, name):
            logger.info("route_update_reply_rejected", root=root.relative_path)
            return None
        return candidate
