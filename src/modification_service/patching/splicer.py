"""Line-range splicing of replacement text into file content."""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass
from typing import Iterable

_LEADING_WS = re.compile(r"^[ \t]*")


@dataclass(frozen=True)
class Replacement:
    start_line: int  # 1-based, inclusive
    end_line: int
    text: str


def drop_nested(replacements: Iterable[Replacement]) -> list[Replacement]:
    """Keep only outermost replacements; any range overlapping a kept one is dropped.

    Wider ranges win over the narrower ranges they contain. Among equally wide
    overlapping ranges the earlier one wins.
    """
    ordered = sorted(replacements, key=lambda r: (-(r.end_line - r.start_line), r.start_line))
    kept: list[Replacement] = []
    for candidate in ordered:
        if all(candidate.end_line < k.start_line or candidate.start_line > k.end_line for k in kept):
            kept.append(candidate)
    return sorted(kept, key=lambda r: r.start_line)


def match_indentation(original_first_line: str, text: str) -> str:
    """Re-indent ``text`` so its least indented line sits at the original node's indent."""
    indent = _LEADING_WS.match(original_first_line).group(0)
    body = textwrap.dedent(text.strip("\n"))
    return "\n".join(indent + line if line.strip() else "" for line in body.split("\n"))


def _replacement_lines(lines: list[str], replacement: Replacement) -> list[str]:
    return match_indentation(lines[replacement.start_line - 1], replacement.text).split("\n")


def splice(content: str, replacements: Iterable[Replacement]) -> str:
    """Apply replacements in descending ``start_line`` order.

    Working bottom-up keeps the line numbers of not-yet-applied replacements valid.
    Overlapping replacements must have been removed with ``drop_nested`` first.
    """
    lines = content.split("\n")
    original = list(lines)
    for replacement in sorted(replacements, key=lambda r: r.start_line, reverse=True):
        lines[replacement.start_line - 1:replacement.end_line] = _replacement_lines(original, replacement)
    return "\n".join(lines)


def splice_ascending(content: str, replacements: Iterable[Replacement]) -> str:
    """Apply replacements top-down, shifting later ranges by the accumulated line delta."""
    lines = content.split("\n")
    original = list(lines)
    offset = 0
    for replacement in sorted(replacements, key=lambda r: r.start_line):
        new_lines = _replacement_lines(original, replacement)
        start = replacement.start_line - 1 + offset
        end = replacement.end_line + offset
        lines[start:end] = new_lines
        offset += len(new_lines) - (replacement.end_line - replacement.start_line + 1)
    return "\n".join(lines)


def add_missing_imports(content: str, import_lines: Iterable[str]) -> str:
    """Insert each import not already present right after the last top-level import."""
    lines = content.split("\n")
    present = {line.strip() for line in lines}
    missing = []
    for statement in import_lines:
        statement = statement.strip()
        if statement and statement.startswith("import") and statement not in present and statement not in missing:
            missing.append(statement)
    if not missing:
        return content

    insert_at = 0
    for index, line in enumerate(lines):
        if re.match(r"^\s*import\b", line):
            insert_at = index + 1
        elif insert_at and re.search(r"""from\s*['"][^'"]+['"]\s*;?\s*$""", line):
            insert_at = index + 1
    lines[insert_at:insert_at] = missing
    return "\n".join(lines)
