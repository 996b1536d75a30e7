"""Structural snapshots: what an edit must not break.

A snapshot records the import statements, the export lines and the primary declared
name of a file before it is edited. Comparison ignores leading and trailing
whitespace of each line so re-indentation is not reported as a violation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from modification_service.parsing import is_parseable

_IMPORT_START = re.compile(r"^\s*import\b(?!\s*\()")
_IMPORT_END = re.compile(r"""(\bfrom\s*['"][^'"]+['"]|^\s*import\s*['"][^'"]+['"])\s*;?\s*$""")
_EXPORT_LINE = re.compile(r"^\s*export\b")

_PRIMARY_NAME_PATTERNS = (
    re.compile(r"^\s*export\s+default\s+(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)", re.MULTILINE),
    re.compile(r"^\s*export\s+default\s+(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)", re.MULTILINE),
    re.compile(r"^\s*export\s+default\s+(?:React\.)?(?:memo|forwardRef)?\(?\s*([A-Za-z_$][\w$]*)\s*\)?\s*;?\s*$", re.MULTILINE),
    re.compile(r"^\s*(?:export\s+)?(?:async\s+)?function\s+([A-Z][\w$]*)", re.MULTILINE),
    re.compile(r"^\s*(?:export\s+)?(?:const|let|var)\s+([A-Z][\w$]*)\s*[:=]", re.MULTILINE),
    re.compile(r"^\s*(?:export\s+)?class\s+([A-Z][\w$]*)", re.MULTILINE),
)


def _normalize_lines(content: str) -> list[str]:
    return [line.strip() for line in content.replace("\r\n", "\n").split("\n")]


@dataclass(frozen=True)
class ImportStatement:
    start_line: int  # 1-based line in the original content
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class ExportLine:
    line_number: int
    text: str


@dataclass(frozen=True)
class ValidationReport:
    missing_imports: tuple[ImportStatement, ...] = ()
    missing_exports: tuple[ExportLine, ...] = ()
    primary_name_missing: bool = False
    parse_failed: bool = False

    @property
    def ok(self) -> bool:
        return not (self.missing_imports or self.missing_exports or self.primary_name_missing or self.parse_failed)

    def describe(self) -> str:
        problems = []
        if self.missing_imports:
            problems.append(f"{len(self.missing_imports)} import(s) removed")
        if self.missing_exports:
            problems.append(f"{len(self.missing_exports)} export line(s) removed")
        if self.primary_name_missing:
            problems.append("primary declaration name removed")
        if self.parse_failed:
            problems.append("content no longer parses")
        return ", ".join(problems) or "valid"


@dataclass(frozen=True)
class StructuralSnapshot:
    imports: tuple[ImportStatement, ...] = ()
    exports: tuple[ExportLine, ...] = ()
    primary_name: Optional[str] = None
    dialect: Optional[str] = None
    parsed: bool = False
    original_lines: tuple[str, ...] = field(default=(), repr=False)


def primary_name_of(content: str) -> Optional[str]:
    for pattern in _PRIMARY_NAME_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(1)
    return None


def take_snapshot(content: str, dialect: Optional[str] = None) -> StructuralSnapshot:
    lines = content.replace("\r\n", "\n").split("\n")
    imports: list[ImportStatement] = []
    exports: list[ExportLine] = []

    index = 0
    while index < len(lines):
        line = lines[index]
        if _IMPORT_START.match(line):
            start = index
            # Multi-line imports run until the module specifier
            while index < len(lines) - 1 and not _IMPORT_END.search(lines[index]):
                index += 1
            statement = tuple(item.strip() for item in lines[start:index + 1])
            imports.append(ImportStatement(start_line=start + 1, lines=statement))
        elif _EXPORT_LINE.match(line):
            exports.append(ExportLine(line_number=index + 1, text=line.strip()))
        index += 1

    return StructuralSnapshot(
        imports=tuple(imports),
        exports=tuple(exports),
        primary_name=primary_name_of(content),
        dialect=dialect,
        parsed=bool(dialect) and is_parseable(content, dialect),
        original_lines=tuple(lines),
    )


def _contains_block(haystack: list[str], block: tuple[str, ...]) -> bool:
    size = len(block)
    if size == 1:
        return block[0] in haystack
    return any(tuple(haystack[i:i + size]) == block for i in range(len(haystack) - size + 1))


def validate(snapshot: StructuralSnapshot, content: str, require_parse: bool = True) -> ValidationReport:
    """Compare ``content`` against ``snapshot``.

    Content is required to parse only when the original parsed.
    """
    normalized = _normalize_lines(content)
    line_set = set(normalized)

    missing_imports = tuple(i for i in snapshot.imports if not _contains_block(normalized, i.lines))
    missing_exports = tuple(e for e in snapshot.exports if e.text not in line_set)
    name_missing = bool(
        snapshot.primary_name
        and not re.search(rf"(?<![\w$]){re.escape(snapshot.primary_name)}(?![\w$])", content)
    )
    parse_failed = bool(require_parse and snapshot.parsed and not is_parseable(content, snapshot.dialect))

    return ValidationReport(
        missing_imports=missing_imports,
        missing_exports=missing_exports,
        primary_name_missing=name_missing,
        parse_failed=parse_failed,
    )


def _next_filled(lines: list[str], start: int) -> Optional[str]:
    for line in lines[start:]:
        if line:
            return line
    return None


def _anchor_index(original: tuple[str, ...], first: int, last: int, candidate: list[str]) -> Optional[int]:
    """Index in ``candidate`` where an item spanning original lines ``first``..``last`` goes back.

    The anchor is the nearest surviving original line before the item. Lines such as
    ``};`` repeat, so among its occurrences the one followed by the item's original
    successor wins, then the one closest to the item's original position. Returns
    ``None`` for items that ended the original file.
    """
    normalized = [line.strip() for line in candidate]
    present = set(normalized)
    following = [line.strip() for line in original[last:] if line.strip()]
    if not following:
        return None
    successor = next((line for line in following if line in present), None)
    drift = len(candidate) - len(original)

    for back in range(first - 2, -1, -1):
        needle = original[back].strip()
        if not needle or needle not in present:
            continue
        hits = [i for i, line in enumerate(normalized) if line == needle]
        if successor is not None:
            hits = [i for i in hits if _next_filled(normalized, i + 1) == successor] or hits
        return min(hits, key=lambda i: abs(i - (back + drift))) + 1
    return None


def _last_import_end(candidate: list[str]) -> int:
    end = 0
    index = 0
    while index < len(candidate):
        if _IMPORT_START.match(candidate[index]):
            while index < len(candidate) - 1 and not _IMPORT_END.search(candidate[index]):
                index += 1
            end = index + 1
        index += 1
    return end


def repair(snapshot: StructuralSnapshot, content: str, require_parse: bool = True) -> Optional[str]:
    """Re-insert missing import statements and export lines.

    Each missing item goes back after the nearest line that preceded it in the
    original file. Imports without such an anchor go after the last remaining import;
    exports without one go to the end of the file. Returns the repaired content if it
    validates, ``None`` otherwise.
    """
    report = validate(snapshot, content, require_parse=require_parse)
    if report.ok:
        return content
    if report.primary_name_missing:
        return None

    lines = content.replace("\r\n", "\n").split("\n")
    for statement in report.missing_imports:
        last = statement.start_line + len(statement.lines) - 1
        at = _anchor_index(snapshot.original_lines, statement.start_line, last, lines)
        if at is None or at > _last_import_end(lines) + 1:
            at = _last_import_end(lines)
        lines[at:at] = list(statement.lines)

    for export in report.missing_exports:
        at = _anchor_index(snapshot.original_lines, export.line_number, export.line_number, lines)
        if at is None:
            at = len(lines) - 1 if lines and lines[-1] == "" else len(lines)
        lines.insert(at, export.text)

    repaired = "\n".join(lines)
    if validate(snapshot, repaired, require_parse=require_parse).ok:
        return repaired
    return None
