"""Structural parser for JSX/TSX sources.

Turns one file's text into an ordered list of addressable structural nodes:
top-level declarations (functions, classes, interfaces, type aliases, variable
declarations) and JSX elements down to a fixed nesting depth.

- Nodes are emitted in document (pre-order) order and numbered ``node_1``, ``node_2``...
  so the same content always yields the same ids for the same ranges.
- Line numbers are 1-based and inclusive; ``code_snippet`` holds the complete lines.
- Siblings at one nesting level never share a line. A sibling starting on a line
  already covered by the previous sibling is skipped together with its subtree.
- Unparseable content yields an empty list. Callers treat that as "not eligible for
  node-level editing".
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import PurePosixPath
from typing import Optional

import structlog
from tree_sitter_language_pack import get_parser

from modification_service.models.records import StructuralNode

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 6
MAX_TEXT_CHARS = 80

_DIALECTS = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

DECLARATION_KINDS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "lexical_declaration",
    "variable_declaration",
})

JSX_KINDS = frozenset({"jsx_element", "jsx_self_closing_element"})

_TAG_NAME_KINDS = ("identifier", "member_expression", "nested_identifier", "jsx_namespace_name")


def dialect_for_path(path: str) -> Optional[str]:
    """Grammar name for a file path, ``None`` for files that are not parsed."""
    return _DIALECTS.get(PurePosixPath(path.replace("\\", "/")).suffix.lower())


@lru_cache(maxsize=None)
def _parser(dialect: str):
    return get_parser(dialect)


def _parse_tree(content: str, dialect: str):
    return _parser(dialect).parse(content.encode("utf-8"))


def is_parseable(content: str, dialect: str = "tsx") -> bool:
    """True when the grammar accepts ``content`` without error nodes."""
    try:
        return not _parse_tree(content, dialect).root_node.has_error
    except Exception as e:
        logger.warning("structural_parse_crashed", dialect=dialect, error=str(e))
        return False


def parse(content: str, dialect: str = "tsx", max_depth: int = DEFAULT_MAX_DEPTH) -> list[StructuralNode]:
    """Parse ``content`` into structural nodes. Never raises."""
    try:
        tree = _parse_tree(content, dialect)
    except Exception as e:
        logger.warning("structural_parse_crashed", dialect=dialect, error=str(e))
        return []

    if tree.root_node.has_error:
        logger.debug("structural_parse_rejected", dialect=dialect, reason="syntax_error")
        return []

    lines = content.replace("\r\n", "\n").split("\n")
    collector = _NodeCollector(lines, max_depth)
    collector.collect(tree.root_node)
    return collector.nodes


class _NodeCollector:
    def __init__(self, lines: list[str], max_depth: int) -> None:
        self.lines = lines
        self.max_depth = max_depth
        self.nodes: list[StructuralNode] = []

    def collect(self, root) -> None:
        frontier = [0]
        for child in root.named_children:
            declaration = _declaration_of(child)
            if declaration is None:
                self._visit(child, 0, frontier)
                continue
            if self._emit(child, declaration.type, 0, frontier, name=_declaration_name(declaration)):
                self._visit(child, 0, [0])

    def _visit(self, node, depth: int, frontier: list[int]) -> None:
        for child in node.named_children:
            if child.type in JSX_KINDS:
                if depth >= self.max_depth:
                    continue
                if self._emit(child, "element", depth + 1, frontier, name=_tag_name(child), text=_jsx_text(child)):
                    self._visit(child, depth + 1, [0])
            else:
                self._visit(child, depth, frontier)

    def _emit(self, node, kind: str, depth: int, frontier: list[int], name=None, text: str = "") -> bool:
        start, end = _line_range(node)
        if start <= frontier[0]:
            return False
        frontier[0] = end
        self.nodes.append(
            StructuralNode(
                id=f"node_{len(self.nodes) + 1}",
                start_line=start,
                end_line=end,
                code_snippet="\n".join(self.lines[start - 1:end]),
                kind=kind,
                name=name,
                text_content=text,
                depth=depth,
            )
        )
        return True


def _line_range(node) -> tuple[int, int]:
    start_row = node.start_point[0]
    end_row, end_col = node.end_point[0], node.end_point[1]
    if end_col == 0 and end_row > start_row:
        end_row -= 1
    return start_row + 1, end_row + 1


def _node_text(node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text is not None else ""


def _declaration_of(node):
    if node.type in DECLARATION_KINDS:
        return node
    if node.type != "export_statement":
        return None
    declaration = node.child_by_field_name("declaration")
    if declaration is not None and declaration.type in DECLARATION_KINDS:
        return declaration
    for child in node.named_children:
        if child.type in DECLARATION_KINDS:
            return child
    return None


def _declaration_name(declaration) -> Optional[str]:
    name = declaration.child_by_field_name("name")
    if name is not None:
        return _node_text(name)
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        for child in declaration.named_children:
            if child.type == "variable_declarator":
                declarator_name = child.child_by_field_name("name")
                if declarator_name is not None:
                    return _node_text(declarator_name)
    return None


def _tag_name(element) -> Optional[str]:
    tag = element
    if element.type == "jsx_element":
        tag = element.child_by_field_name("open_tag")
        if tag is None:
            tag = next((c for c in element.named_children if c.type == "jsx_opening_element"), None)
        if tag is None:
            return None
    name = tag.child_by_field_name("name")
    if name is None:
        name = next((c for c in tag.named_children if c.type in _TAG_NAME_KINDS), None)
    # Fragments (<>...</>) carry no name
    return _node_text(name) if name is not None else None


def _jsx_text(element) -> str:
    if element.type != "jsx_element":
        return ""
    parts = []
    for child in element.named_children:
        if child.type == "jsx_text":
            value = " ".join(_node_text(child).split())
            if value:
                parts.append(value)
    return " ".join(parts)[:MAX_TEXT_CHARS]
