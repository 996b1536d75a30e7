"""Last fallback stage: a hardcoded component written without any reasoning call."""

from __future__ import annotations

import json
import re

import structlog

from modification_service.models.modification_models import (
    EMERGENCY_APPROACH,
    ChangeType,
    ModificationChange,
    ModificationScope,
)
from modification_service.models.records import PipelineResult
from modification_service.orchestrator.component_creator import unique_component_path
from modification_service.orchestrator.scope_heuristics import STOPWORDS
from modification_service.patching.applier import PatchApplier
from modification_service.session.project_scanner import build_project_file
from modification_service.session.state_store import SessionState, SessionStateStore

logger = structlog.get_logger(__name__)

DEFAULT_STUB_NAME = "GeneratedComponent"
MAX_ECHOED_REQUEST = 200

_VERBS = frozenset({
    "change", "update", "modify", "fix", "set", "put", "remove", "delete", "replace",
    "turn", "show", "hide", "use", "want", "need", "can", "you", "it", "be", "is", "should", "i",
})

STUB_TEMPLATE = """import React from 'react';

interface {name}Props {{
  className?: string;
}}

const {name}: React.FC<{name}Props> = ({{ className = '' }}) => {{
  return (
    <section className={{`p-4 rounded border border-gray-200 ${{className}}`}}>
      <h2 className="text-lg font-semibold">{title}</h2>
      <p className="text-sm text-gray-600">{{{request}}}</p>
    </section>
  );
}};

export default {name};
"""


def stub_name_for(request: str) -> str:
    words = [
        w for w in re.findall(r"[A-Za-z]+", request)
        if w.lower() not in STOPWORDS and w.lower() not in _VERBS and len(w) > 2
    ]
    name = "".join(w[:1].upper() + w[1:].lower() for w in words[:2])
    return name or DEFAULT_STUB_NAME


def render_stub(name: str, request: str) -> str:
    echoed = " ".join(request.split())[:MAX_ECHOED_REQUEST]
    title = re.sub(r"(?<!^)(?=[A-Z])", " ", name)
    return STUB_TEMPLATE.format(name=name, title=title, request=json.dumps(echoed))


class EmergencyStubWriter:
    """Always-available final stage. Reports its own failure honestly."""

    approach = EMERGENCY_APPROACH

    def __init__(self, applier: PatchApplier, store: SessionStateStore):
        self._applier = applier
        self._store = store

    async def run(self, request: str, scope: ModificationScope, state: SessionState, project_summary: str) -> PipelineResult:
        root = self._applier.path_policy.project_root
        name, relative = unique_component_path(root, state.file_map, "components", stub_name_for(request))
        content = render_stub(name, request)

        outcome = await self._applier.write_new_file(relative, content)
        await self._store.append_change(
            state.session_id,
            ModificationChange(
                type=ChangeType.CREATED if outcome.success else ChangeType.FAILED,
                file=relative,
                description=request,
                success=outcome.success,
                approach=self.approach,
                details={"stub": True, "error_kind": outcome.error_kind.value if outcome.error_kind else None},
            ),
        )
        if not outcome.success:
            logger.error("emergency_stub_failed", file=relative, error=outcome.message)
            return PipelineResult(
                False, self.approach, error_kind=outcome.error_kind, message=f"emergency stub failed: {outcome.message}"
            )

        state.file_map[relative] = build_project_file(root, relative, content)
        await self._store.set_files(state.session_id, state.file_map)
        logger.warning("emergency_stub_written", file=relative, component=name)
        return PipelineResult(
            True,
            self.approach,
            reasoning=f"All strategies failed; wrote placeholder component {name}",
            added_files=[relative],
        )
