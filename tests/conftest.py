from pathlib import Path

import pytest

from modification_service.configuration.modification_config import ModificationSettings
from test_helpers import PROJECT_FILES, FailingCache, InMemoryCache


@pytest.fixture
def react_project(tmp_path) -> Path:
    root = tmp_path / "project"
    for relative, content in PROJECT_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def settings(react_project) -> ModificationSettings:
    return ModificationSettings(PROJECT_ROOT=str(react_project))


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def failing_cache() -> FailingCache:
    return FailingCache()
