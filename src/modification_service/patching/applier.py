"""Patch generation and safe application.

One applier serves every edit path (node edits, full-file rewrites, new files). The
path policy and the validation policy are configuration, not subclasses.

Write discipline: snapshot the original, validate the candidate, repair once if
needed, write atomically, and only then update the in-memory ``ProjectFile``. A
rejected edit leaves both the disk and the in-memory content untouched.
"""

from __future__ import annotations

import asyncio
import difflib
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import structlog

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import ErrorKind, PathPolicyError, ReasoningServiceError, ReplyFormatError
from modification_service.models.modification_models import ProjectFile
from modification_service.models.records import PatchOutcome, StructuralNode
from modification_service.orchestrator.clients.reasoning import ReasoningService
from modification_service.orchestrator.prompts import FULL_FILE_REWRITER, NODE_EDITOR, render_prompt
from modification_service.parsing import dialect_for_path
from modification_service.patching.path_policy import PathPolicy
from modification_service.patching.snapshot import repair, take_snapshot, validate
from modification_service.patching.splicer import Replacement, add_missing_imports, drop_nested, splice
from modification_service.utils.json_utils import extract_code_block, extract_json_object, preview

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationPolicy:
    require_parse: bool = True
    allow_repair: bool = True


@dataclass(frozen=True)
class PatchPolicy:
    path_policy: PathPolicy
    validation_policy: ValidationPolicy = field(default_factory=ValidationPolicy)


@dataclass(frozen=True)
class NodeEdit:
    code: str
    required_imports: tuple[str, ...] = ()


def parse_node_edit_reply(raw: str, known_ids: Iterable[str]) -> dict[str, NodeEdit]:
    """Map node id to its replacement. Unknown ids and blank replacements are dropped."""
    data = extract_json_object(raw)
    if isinstance(data.get("modifications"), dict):
        data = data["modifications"]

    known = set(known_ids)
    edits: dict[str, NodeEdit] = {}
    for node_id, value in data.items():
        if node_id not in known:
            continue
        code, imports = _edit_value(value)
        if code is None or not code.strip():
            continue
        edits[node_id] = NodeEdit(code=code, required_imports=imports)
    return edits


def _edit_value(value: Any) -> tuple[str | None, tuple[str, ...]]:
    if isinstance(value, str):
        return value, ()
    if isinstance(value, dict):
        code = value.get("modifiedCode", value.get("code"))
        imports = value.get("requiredImports") or []
        if not isinstance(code, str):
            return None, ()
        return code, tuple(i for i in imports if isinstance(i, str))
    return None, ()


def atomic_write(path: Path, content: str) -> None:
    """Write via a temporary sibling and rename, so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(temp_name, path)
    except OSError:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise


def count_changed_lines(before: str, after: str) -> int:
    return sum(
        1 for line in difflib.ndiff(before.split("\n"), after.split("\n"))
        if line.startswith(("+ ", "- "))
    )


def _format_nodes(nodes: Iterable[StructuralNode]) -> str:
    blocks = []
    for node in nodes:
        label = f"{node.id} (lines {node.start_line}-{node.end_line}, {node.kind}"
        label += f" <{node.name}>)" if node.name else ")"
        blocks.append(f"{label}\n```\n{node.code_snippet}\n```")
    return "\n\n".join(blocks)


class PatchApplier:
    def __init__(self, reasoning: ReasoningService, policy: PatchPolicy, settings: ModificationSettings):
        self._reasoning = reasoning
        self._policy = policy
        self._settings = settings

    @property
    def path_policy(self) -> PathPolicy:
        return self._policy.path_policy

    async def apply_node_edits(
        self,
        project_file: ProjectFile,
        target_nodes: Iterable[StructuralNode],
        request: str,
    ) -> PatchOutcome:
        """Ask for all target nodes of one file in a single call and splice the replies."""
        nodes = list(target_nodes)
        path = project_file.relative_path
        if not nodes:
            return PatchOutcome(path, False, ErrorKind.NO_TARGETS, "no target nodes")

        prompt = render_prompt(NODE_EDITOR, request=request, file_path=path, nodes=_format_nodes(nodes))
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.NODE_EDIT_MAX_OUTPUT, self._settings.GENERATION_TEMPERATURE
            )
        except ReasoningServiceError as e:
            return PatchOutcome(path, False, ErrorKind.SERVICE_UNAVAILABLE, str(e))

        try:
            edits = parse_node_edit_reply(raw, (n.id for n in nodes))
        except ReplyFormatError as e:
            logger.warning("node_edit_reply_malformed", file=path, error=str(e), raw_reply=preview(e.raw_reply))
            return PatchOutcome(path, False, ErrorKind.REPLY_MALFORMED, str(e))

        by_id = {n.id: n for n in nodes}
        replacements = drop_nested(
            Replacement(by_id[node_id].start_line, by_id[node_id].end_line, edit.code)
            for node_id, edit in edits.items()
        )
        if not replacements:
            return PatchOutcome(path, False, ErrorKind.NO_CHANGES, "reply changed no listed node")

        new_content = splice(project_file.content, replacements)
        new_content = add_missing_imports(
            new_content, [imp for edit in edits.values() for imp in edit.required_imports]
        )
        logger.info("node_edits_spliced", file=path, requested=len(nodes), applied=len(replacements))
        return await self.write_validated(project_file, new_content)

    async def apply_full_file_rewrite(self, project_file: ProjectFile, request: str, reasoning: str) -> PatchOutcome:
        path = project_file.relative_path
        prompt = render_prompt(
            FULL_FILE_REWRITER,
            request=request,
            reasoning=reasoning or "selected as relevant",
            file_path=path,
            content=project_file.content,
        )
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.FULL_FILE_MAX_OUTPUT, self._settings.GENERATION_TEMPERATURE
            )
            marker, code = extract_code_block(raw)
        except ReasoningServiceError as e:
            return PatchOutcome(path, False, ErrorKind.SERVICE_UNAVAILABLE, str(e))
        except ReplyFormatError as e:
            logger.warning("full_file_reply_malformed", file=path, error=str(e), raw_reply=preview(e.raw_reply))
            return PatchOutcome(path, False, ErrorKind.REPLY_MALFORMED, str(e))

        if marker and marker.lstrip("./") != path:
            logger.info("full_file_marker_mismatch", file=path, marker=marker)
        if not project_file.content.endswith("\n"):
            code = code.rstrip("\n")
        return await self.write_validated(project_file, code)

    async def write_validated(self, project_file: ProjectFile, new_content: str) -> PatchOutcome:
        """Validate ``new_content`` against the file's current content, then write it."""
        path = project_file.relative_path
        original = project_file.content
        if new_content == original:
            return PatchOutcome(path, False, ErrorKind.NO_CHANGES, "content unchanged")

        try:
            target = self.path_policy.resolve(path)
        except PathPolicyError as e:
            logger.warning("write_rejected_by_path_policy", file=path, error=str(e))
            return PatchOutcome(path, False, ErrorKind.PATH_REJECTED, str(e))

        rules = self._policy.validation_policy
        snapshot = take_snapshot(original, dialect_for_path(path))
        report = validate(snapshot, new_content, require_parse=rules.require_parse)
        repaired = False
        if not report.ok:
            fixed = repair(snapshot, new_content, require_parse=rules.require_parse) if rules.allow_repair else None
            if fixed is None:
                logger.warning("structural_validation_rejected", file=path, problems=report.describe())
                return PatchOutcome(path, False, ErrorKind.VALIDATION_FAILED, report.describe())
            logger.info("structural_validation_repaired", file=path, problems=report.describe())
            new_content, repaired = fixed, True

        try:
            await asyncio.to_thread(atomic_write, target, new_content)
        except OSError as e:
            logger.error("file_write_failed", file=path, error=str(e))
            return PatchOutcome(path, False, ErrorKind.WRITE_FAILED, str(e))

        changed = count_changed_lines(original, new_content)
        project_file.replace_content(new_content)
        logger.info("file_patched", file=path, lines_changed=changed, repaired=repaired)
        return PatchOutcome(path, True, lines_changed=changed, repaired=repaired)

    async def write_new_file(self, relative_path: str, content: str) -> PatchOutcome:
        """Create a file that must not exist yet."""
        try:
            target = self.path_policy.resolve(relative_path)
        except PathPolicyError as e:
            logger.warning("write_rejected_by_path_policy", file=relative_path, error=str(e))
            return PatchOutcome(relative_path, False, ErrorKind.PATH_REJECTED, str(e))
        if target.exists():
            return PatchOutcome(relative_path, False, ErrorKind.WRITE_FAILED, "file already exists")

        try:
            await asyncio.to_thread(atomic_write, target, content)
        except OSError as e:
            logger.error("file_write_failed", file=relative_path, error=str(e))
            return PatchOutcome(relative_path, False, ErrorKind.WRITE_FAILED, str(e))

        logger.info("file_created", file=relative_path, lines=len(content.split("\n")))
        return PatchOutcome(relative_path, True, lines_changed=len(content.split("\n")))
