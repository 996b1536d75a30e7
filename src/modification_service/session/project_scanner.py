"""Filesystem scan producing the project file map."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from modification_service.models.modification_models import ProjectFile

logger = structlog.get_logger(__name__)

SKIPPED_DIRS = frozenset({"node_modules", ".git", ".next", "dist", "build"})
SCANNED_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js", ".css", ".json")
MAIN_FILE_NAMES = frozenset({"App.tsx", "App.jsx", "App.js", "main.tsx", "index.tsx"})
ROOT_COMPOSITION_NAMES = ("App.tsx", "App.jsx", "App.js")

_FILE_TYPES = {
    ".tsx": "react-component",
    ".jsx": "react-component",
    ".ts": "module",
    ".js": "module",
    ".css": "stylesheet",
    ".json": "config",
}


def file_type_for(path: str) -> str:
    return _FILE_TYPES.get(os.path.splitext(path)[1].lower(), "unknown")


def build_project_file(project_root: Path, relative_path: str, content: str) -> ProjectFile:
    return ProjectFile(
        path=str(project_root / relative_path),
        relative_path=relative_path,
        content=content,
        line_count=len(content.split("\n")),
        file_type=file_type_for(relative_path),
        is_main_file=os.path.basename(relative_path) in MAIN_FILE_NAMES,
    )


class ProjectScanner:
    """Walks a project root and loads every source file into a ``ProjectFile``."""

    def __init__(self, project_root: str | Path):
        self.project_root = Path(project_root).resolve()

    def scan(self) -> dict[str, ProjectFile]:
        files: dict[str, ProjectFile] = {}
        if not self.project_root.is_dir():
            logger.warning("project_root_missing", project_root=str(self.project_root))
            return files

        for current, dirs, names in os.walk(self.project_root):
            dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRS and not d.startswith("."))
            for name in sorted(names):
                if not name.endswith(SCANNED_EXTENSIONS):
                    continue
                absolute = Path(current) / name
                relative = absolute.relative_to(self.project_root).as_posix()
                try:
                    content = absolute.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("project_file_unreadable", file=relative, error=str(e))
                    continue
                files[relative] = build_project_file(self.project_root, relative, content)

        logger.info("project_scanned", project_root=str(self.project_root), file_count=len(files))
        return files
