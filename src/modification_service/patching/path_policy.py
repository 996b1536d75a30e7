"""Write-target restriction for the patch applier."""

from __future__ import annotations

from pathlib import Path

from modification_service.errors import PathPolicyError


class PathPolicy:
    """Resolves project-relative paths and refuses anything outside the allowed area.

    The allowed area is the project root, narrowed to ``src/`` when ``restrict_to_src``
    is set and the project actually has a ``src`` directory.
    """

    def __init__(self, project_root: str | Path, restrict_to_src: bool = True):
        self.project_root = Path(project_root).resolve()
        self.restrict_to_src = restrict_to_src

    @property
    def allowed_root(self) -> Path:
        src = self.project_root / "src"
        if self.restrict_to_src and src.is_dir():
            return src
        return self.project_root

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for ``relative_path``. Raises ``PathPolicyError`` if disallowed."""
        if not relative_path or not relative_path.strip():
            raise PathPolicyError("empty write target")

        candidate = Path(relative_path.replace("\\", "/"))
        if not candidate.is_absolute():
            candidate = self.project_root / candidate
        resolved = candidate.resolve()

        allowed = self.allowed_root
        if resolved != allowed and not resolved.is_relative_to(allowed):
            raise PathPolicyError(f"{relative_path} resolves outside {allowed}")
        return resolved
