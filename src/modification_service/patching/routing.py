"""Route table updates for newly created pages."""

from __future__ import annotations

import posixpath
import re
from collections import Counter
from typing import Optional

from modification_service.patching.splicer import add_missing_imports

_ROUTE_OPEN = re.compile(r"<Route(?![\w])")
_LEADING_WS = re.compile(r"^[ \t]*")


def kebab_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def route_path_for(component_name: str) -> str:
    return "/" + kebab_case(component_name)


def import_path_for(root_file: str, target_file: str) -> str:
    """Relative module specifier from ``root_file`` to ``target_file`` without extension."""
    target = posixpath.splitext(target_file)[0]
    spec = posixpath.relpath(target, posixpath.dirname(root_file) or ".")
    return spec if spec.startswith(".") else "./" + spec


def import_line_for(component_name: str, module_spec: str) -> str:
    return f"import {component_name} from '{module_spec}';"


def route_line_for(component_name: str, path: str) -> str:
    return f'<Route path="{path}" element={{<{component_name} />}} />'


def has_routes_block(content: str) -> bool:
    return "<Routes" in content and "</Routes>" in content


def _route_lines(content: str) -> list[str]:
    return [line.strip() for line in content.split("\n") if _ROUTE_OPEN.search(line)]


def validate_route_update(original: str, candidate: str, component_name: str) -> bool:
    """True when ``candidate`` keeps every route, adds exactly one and imports the page."""
    if len(_ROUTE_OPEN.findall(candidate)) != len(_ROUTE_OPEN.findall(original)) + 1:
        return False
    if Counter(_route_lines(original)) - Counter(_route_lines(candidate)):
        return False
    name = re.escape(component_name)
    imported = re.search(rf"^\s*import\s+{name}\b[^;\n]*\bfrom\s*['\"]", candidate, re.MULTILINE)
    rendered = re.search(rf"<Route\b[^\n]*<{name}\b", candidate)
    return bool(imported and rendered)


def insert_route(original: str, import_line: str, route_line: str) -> Optional[str]:
    """Deterministic route registration: route before ``</Routes>``, import after the imports.

    Returns ``None`` when the file has no ``<Routes>`` block.
    """
    if not has_routes_block(original):
        return None

    lines = original.split("\n")
    closing = max(i for i, line in enumerate(lines) if "</Routes>" in line)
    previous_routes = [line for line in lines[:closing] if _ROUTE_OPEN.search(line)]
    if previous_routes:
        indent = _LEADING_WS.match(previous_routes[-1]).group(0)
    else:
        indent = _LEADING_WS.match(lines[closing]).group(0) + "  "
    lines.insert(closing, indent + route_line)
    return add_missing_imports("\n".join(lines), [import_line])
