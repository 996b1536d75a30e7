"""Internal record contracts shared by parsing, scoring and patching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from modification_service.errors import ErrorKind


@dataclass(frozen=True)
class StructuralNode:
    id: str
    start_line: int
    end_line: int
    code_snippet: str
    kind: str
    name: Optional[str] = None
    text_content: str = ""
    depth: int = 0

    @property
    def line_span(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass(frozen=True)
class RelevanceResult:
    file_path: str
    is_relevant: bool
    score: int
    reasoning: str
    target_nodes: tuple[StructuralNode, ...] = ()


@dataclass(frozen=True)
class PatchOutcome:
    """Result of one file write attempt."""

    file_path: str
    success: bool
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    lines_changed: int = 0
    repaired: bool = False


@dataclass
class PipelineResult:
    """Result of one orchestration stage."""

    success: bool
    approach: str
    reasoning: str = ""
    selected_files: list[str] = field(default_factory=list)
    added_files: list[str] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    message: str = ""
