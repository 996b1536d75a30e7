"""Per-file relevance scoring against a request.

Admission is a pure filter over the collected results: one threshold for every file
of a request, so the admitted set does not depend on the order results arrive in.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Iterable, Optional, Sequence

import structlog

from modification_service.configuration.modification_config import ModificationSettings
from modification_service.errors import ReasoningServiceError, ReplyFormatError
from modification_service.models.modification_models import ModificationStrategy, ProjectFile
from modification_service.models.records import RelevanceResult, StructuralNode
from modification_service.orchestrator.clients.reasoning import ReasoningService
from modification_service.orchestrator.project_summary import describe_file
from modification_service.orchestrator.prompts import RELEVANCE_SCORER, render_prompt
from modification_service.utils.json_utils import extract_json_object, preview

logger = structlog.get_logger(__name__)

_LINE_FIELD = re.compile(r"^\s*(RELEVANT|SCORE|REASON|REASONING|TARGETS)\s*:\s*(.*)$", re.IGNORECASE | re.MULTILINE)
_NODE_ID = re.compile(r"node_\d+")


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("yes", "true", "y", "1"):
            return True
        if lowered in ("no", "false", "n", "0"):
            return False
    return None


def _as_score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = re.search(r"-?\d+(?:\.\d+)?", value)
        value = match.group(0) if match else None
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return None


def _as_targets(value: Any) -> list[str]:
    if isinstance(value, str):
        return _NODE_ID.findall(value)
    if isinstance(value, list):
        return [str(v).strip() for v in value if isinstance(v, (str, int))]
    return []


def _line_protocol(raw: str) -> Optional[dict]:
    fields = {name.upper(): value.strip() for name, value in _LINE_FIELD.findall(raw)}
    if "RELEVANT" not in fields and "SCORE" not in fields:
        return None
    return {
        "relevant": fields.get("RELEVANT"),
        "score": fields.get("SCORE"),
        "reasoning": fields.get("REASON") or fields.get("REASONING") or "",
        "targets": fields.get("TARGETS", ""),
    }


def parse_relevance_reply(raw: str) -> tuple[bool, int, str, list[str]]:
    """``(relevant, score, reasoning, target_ids)`` from a JSON or line-protocol reply."""
    try:
        data = extract_json_object(raw)
    except ReplyFormatError:
        data = _line_protocol(raw)
        if data is None:
            raise

    relevant = _as_bool(data.get("relevant", data.get("isRelevant")))
    score = _as_score(data.get("score"))
    if relevant is None or score is None:
        raise ReplyFormatError("relevance reply lacks a verdict or a score", raw_reply=raw)
    reasoning = str(data.get("reasoning") or data.get("reason") or "").strip()
    return relevant, score, reasoning, _as_targets(data.get("targets", data.get("targetNodes")))


def admit(results: Iterable[RelevanceResult], threshold: int, require_targets: bool = False) -> list[RelevanceResult]:
    """Files that are relevant with ``score >= threshold``, best first."""
    admitted = [
        r for r in results
        if r.is_relevant and r.score >= threshold and (r.target_nodes or not require_targets)
    ]
    return sorted(admitted, key=lambda r: (-r.score, r.file_path))


class RelevanceScorer:
    def __init__(self, reasoning: ReasoningService, settings: ModificationSettings):
        self._reasoning = reasoning
        self._settings = settings

    def _nodes_preview(self, nodes: Sequence[StructuralNode]) -> str:
        limit = self._settings.MAX_NODES_IN_PROMPT
        snippet_chars = self._settings.MAX_SNIPPET_CHARS
        blocks = []
        for node in nodes[:limit]:
            header = f"{node.id} [lines {node.start_line}-{node.end_line}] {node.kind}"
            if node.name:
                header += f" <{node.name}>"
            if node.name and (node.name.lower() == "button" or node.name.endswith("Button")):
                header += " [BUTTON]"
            if node.text_content:
                header += f' text="{node.text_content}"'
            snippet = node.code_snippet
            if len(snippet) > snippet_chars:
                snippet = snippet[:snippet_chars] + "..."
            blocks.append(f"{header}\n{snippet}")
        if len(nodes) > limit:
            blocks.append(f"... {len(nodes) - limit} more nodes not shown")
        return "\n\n".join(blocks) or "(no structural nodes)"

    async def score(
        self,
        request: str,
        project_file: ProjectFile,
        nodes: Sequence[StructuralNode],
        strategy: ModificationStrategy,
        project_context: str,
    ) -> RelevanceResult:
        path = project_file.relative_path
        if strategy == ModificationStrategy.NODE_EDIT and not nodes:
            return RelevanceResult(path, False, 0, "no structural nodes; not eligible for node edits")

        prompt = render_prompt(
            RELEVANCE_SCORER,
            request=request,
            strategy=strategy.value,
            file_path=path,
            file_type=describe_file(project_file),
            line_count=project_file.line_count,
            project_context=project_context or "(none)",
            nodes_preview=self._nodes_preview(nodes),
        )
        try:
            raw = await self._reasoning.complete(
                prompt, self._settings.RELEVANCE_MAX_OUTPUT, self._settings.ANALYSIS_TEMPERATURE
            )
        except ReasoningServiceError as e:
            logger.warning("relevance_service_unavailable", file=path, error=str(e))
            return RelevanceResult(path, False, 0, "reasoning service unavailable")

        try:
            relevant, score, reasoning, target_ids = parse_relevance_reply(raw)
        except ReplyFormatError as e:
            logger.warning("relevance_reply_malformed", file=path, error=str(e), raw_reply=preview(raw))
            return RelevanceResult(path, False, 0, "unparseable relevance reply")

        targets: tuple[StructuralNode, ...] = ()
        if strategy == ModificationStrategy.NODE_EDIT:
            by_id = {n.id: n for n in nodes}
            targets = tuple(by_id[i] for i in dict.fromkeys(target_ids) if i in by_id)

        logger.info("file_scored", file=path, relevant=relevant, score=score, targets=[n.id for n in targets])
        return RelevanceResult(path, relevant, score, reasoning, targets)

    async def score_files(
        self,
        request: str,
        candidates: Sequence[tuple[ProjectFile, Sequence[StructuralNode]]],
        strategy: ModificationStrategy,
        project_context: str,
    ) -> list[RelevanceResult]:
        """Score candidates concurrently; each call works on its own file only."""
        semaphore = asyncio.Semaphore(self._settings.MAX_CONCURRENT_SCORING)

        async def _bounded(project_file: ProjectFile, nodes: Sequence[StructuralNode]) -> RelevanceResult:
            async with semaphore:
                return await self.score(request, project_file, nodes, strategy, project_context)

        return list(await asyncio.gather(*(_bounded(f, n) for f, n in candidates)))
