"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pluck.core.models import Project
from pluck.infrastructure.project_store import MemoryProjectStore
from tests.helpers.builds import scenario_project_a

_SETTINGS_ENV = (
    "PLUCK_UPSTREAM_FILTER_STRATEGY",
    "PLUCK_CASE_SENSITIVE_PATTERNS",
    "PLUCK_DIGEST_ALGORITHM",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host PLUCK_* variables out of every test."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_a() -> Project:
    return scenario_project_a()


@pytest.fixture
def memory_store(project_a: Project) -> MemoryProjectStore:
    return MemoryProjectStore([project_a])


@pytest.fixture
def jobs_root(tmp_path: Path) -> Path:
    root = tmp_path / "jobs"
    root.mkdir()
    return root
