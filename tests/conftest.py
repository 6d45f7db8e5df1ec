from __future__ import annotations

from pathlib import Path

import pytest

from decksmith.core.project import ProjectLayout


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "proj"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def layout(project: Path) -> ProjectLayout:
    return ProjectLayout.from_root(project)
