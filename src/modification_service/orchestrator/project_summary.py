"""Compact textual summary of a project file map, used as reasoning context."""

from collections import Counter
from typing import Mapping

from modification_service.models.modification_models import ProjectFile
from modification_service.patching.routing import has_routes_block

MAX_LISTED = 25


def _listed(paths: list[str]) -> str:
    shown = ", ".join(paths[:MAX_LISTED])
    if len(paths) > MAX_LISTED:
        shown += f" (+{len(paths) - MAX_LISTED} more)"
    return shown or "none"


def build_project_summary(files: Mapping[str, ProjectFile]) -> str:
    if not files:
        return "Empty project."

    counts = Counter(f.file_type for f in files.values())
    type_counts = ", ".join(f"{kind}: {count}" for kind, count in sorted(counts.items()))
    paths = sorted(files)
    main_files = [p for p in paths if files[p].is_main_file]
    pages = [p for p in paths if "/pages/" in f"/{p}" and files[p].file_type == "react-component"]
    components = [p for p in paths if "/components/" in f"/{p}" and files[p].file_type == "react-component"]
    routers = [p for p in main_files if has_routes_block(files[p].content)]

    lines = [
        f"Files: {len(files)} ({type_counts})",
        f"Main files: {_listed(main_files)}",
        f"Pages: {_listed(pages)}",
        f"Components: {_listed(components)}",
    ]
    if routers:
        lines.append(f"Routing: <Routes> declared in {', '.join(routers)}")
    return "\n".join(lines)


def describe_file(project_file: ProjectFile) -> str:
    path = f"/{project_file.relative_path}"
    if project_file.is_main_file:
        return "application entry / root composition file"
    if "/pages/" in path:
        return "page component"
    if "/components/" in path:
        return "reusable component"
    if "/hooks/" in path:
        return "React hook module"
    return project_file.file_type
