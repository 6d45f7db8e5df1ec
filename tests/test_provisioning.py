from __future__ import annotations

import os
from pathlib import Path

import pytest

from decksmith.core.exceptions import InvalidProvisioningModeError
from decksmith.core.project import ProjectLayout
from decksmith.core.resources import (
    Provisioning,
    provision_resource,
    provisioning_from_meta,
    resource_paths,
)


def _source(project: Path, relative: str = "talk/img.png", payload: bytes = b"PNG") -> Path:
    path = project / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path


def test_copy_publishes_identical_bytes(layout: ProjectLayout, project: Path) -> None:
    source = _source(project)

    url = provision_resource(Provisioning.COPY, layout, project / "talk", "img.png")

    public = project / "public" / "talk" / "img.png"
    assert url == "img.png"
    assert public.read_bytes() == source.read_bytes()


def test_copy_is_idempotent(layout: ProjectLayout, project: Path) -> None:
    _source(project)

    first = provision_resource(Provisioning.COPY, layout, project / "talk", "img.png")
    second = provision_resource(Provisioning.COPY, layout, project / "talk", "img.png")

    assert first == second
    assert sorted(p.name for p in (project / "public" / "talk").iterdir()) == ["img.png"]


def test_public_url_is_relative_to_the_document_output(
    layout: ProjectLayout, project: Path
) -> None:
    _source(project, "shared/logo.png")

    url = provision_resource(Provisioning.COPY, layout, project / "talk", "/shared/logo.png")

    assert url == "../shared/logo.png"
    assert (project / "public" / "shared" / "logo.png").is_file()


def test_symlink_points_at_source(layout: ProjectLayout, project: Path) -> None:
    source = _source(project)

    url = provision_resource(Provisioning.SYMBOLIC_LINK, layout, project / "talk", "img.png")

    public = project / "public" / "talk" / "img.png"
    assert url == "img.png"
    assert public.is_symlink()
    assert Path(os.readlink(public)) == source


def test_symlink_replaces_existing_file(layout: ProjectLayout, project: Path) -> None:
    source = _source(project)
    public = project / "public" / "talk" / "img.png"
    public.parent.mkdir(parents=True)
    public.write_bytes(b"stale")

    provision_resource(Provisioning.SYMBOLIC_LINK, layout, project / "talk", "img.png")
    provision_resource(Provisioning.SYMBOLIC_LINK, layout, project / "talk", "img.png")

    assert public.is_symlink()
    assert public.read_bytes() == source.read_bytes()


def test_reference_returns_file_uri(layout: ProjectLayout, project: Path) -> None:
    source = _source(project)

    url = provision_resource(Provisioning.REFERENCE, layout, project / "talk", "img.png")

    assert url == source.as_uri()
    assert not (project / "public").exists()


def test_resource_paths_for_base_outside_project(layout: ProjectLayout, tmp_path: Path) -> None:
    outside = tmp_path / "loose"
    source = outside / "pic.png"

    resource = resource_paths(layout, outside, source)

    assert resource.public_url == "pic.png"
    assert resource.source_file == source


def test_provisioning_is_read_from_metadata() -> None:
    assert provisioning_from_meta({}) is Provisioning.COPY
    assert provisioning_from_meta({"provisioning": "SymbolicLink"}) is Provisioning.SYMBOLIC_LINK
    assert provisioning_from_meta({"provisioning": "reference"}) is Provisioning.REFERENCE


def test_invalid_provisioning_lists_accepted_values() -> None:
    with pytest.raises(InvalidProvisioningModeError) as excinfo:
        provisioning_from_meta({"provisioning": "Teleport"})

    assert excinfo.value.accepted == ("Copy", "SymbolicLink", "Reference")
    assert "Teleport" in str(excinfo.value)
    assert "SymbolicLink" in str(excinfo.value)
