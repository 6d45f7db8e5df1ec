from __future__ import annotations

from pathlib import Path

import pytest

from decksmith.core.exceptions import ResourceNotFoundError
from decksmith.core.resources import find_resource, read_resource, resolve_locally


def _touch(path: Path, payload: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path


def test_relative_paths_prefer_the_document_directory(project: Path) -> None:
    base = project / "talk"
    local = _touch(base / "img.png", b"local")
    _touch(project / "img.png", b"root")

    assert resolve_locally(project, base, "img.png") == local


def test_relative_paths_fall_back_to_the_root(project: Path) -> None:
    shared = _touch(project / "shared" / "logo.png")

    assert resolve_locally(project, project / "talk", "shared/logo.png") == shared


def test_absolute_paths_prefer_the_project_root(project: Path) -> None:
    inside = _touch(project / "assets" / "logo.png")

    assert find_resource(project, project / "talk", "/assets/logo.png") == inside


def test_absolute_paths_fall_back_to_the_filesystem(project: Path, tmp_path: Path) -> None:
    outside = _touch(tmp_path / "elsewhere" / "logo.png")

    assert find_resource(project, project / "talk", str(outside)) == outside


def test_directories_are_not_resources(project: Path) -> None:
    (project / "talk" / "img.png").mkdir(parents=True)

    assert resolve_locally(project, project / "talk", "img.png") is None


def test_missing_resources_name_the_path(project: Path) -> None:
    with pytest.raises(ResourceNotFoundError) as excinfo:
        find_resource(project, project / "talk", "missing.png")

    assert excinfo.value.path == "missing.png"
    assert "missing.png" in str(excinfo.value)


def test_read_resource_returns_bytes(project: Path) -> None:
    _touch(project / "talk" / "notes.txt", b"hello")

    assert read_resource(project, project / "talk", "notes.txt") == b"hello"
    with pytest.raises(ResourceNotFoundError, match="Cannot read"):
        read_resource(project, project / "talk", "nope.txt")
