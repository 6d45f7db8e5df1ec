from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from decksmith.core.dependencies import InputRecorder
from decksmith.core.exceptions import InvalidMetadataDocumentError, ProjectLayoutError
from decksmith.core.metadata import (
    collect_metadata,
    join_metadata,
    merge_document_metadata,
    metadata_value_as_string,
    read_metadata_for_dir,
    to_template_context,
)
from decksmith.core.project import ProjectLayout


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_nested_metadata_overrides_root(layout: ProjectLayout, project: Path) -> None:
    _write(project / "meta.yaml", "author: A\ntitle: Root\n")
    _write(project / "talk" / "talk-meta.yaml", "title: T\n")

    assert read_metadata_for_dir(layout, project / "talk") == {"author": "A", "title": "T"}


def test_files_in_one_directory_fold_in_name_order(project: Path) -> None:
    _write(project / "a-meta.yaml", "theme: light\nlang: en\n")
    _write(project / "b-meta.yaml", "theme: dark\n")

    assert collect_metadata(project) == {"theme": "dark", "lang": "en"}


def test_metadata_files_are_declared_as_inputs(layout: ProjectLayout, project: Path) -> None:
    root_meta = _write(project / "meta.yaml", "author: A\n")
    talk_meta = _write(project / "talk" / "x-meta.yaml", "title: T\n")
    _write(project / "talk" / "notes.yaml", "ignored: true\n")
    recorder = InputRecorder()

    read_metadata_for_dir(layout, project / "talk", tracker=recorder)

    assert recorder.inputs == [root_meta, talk_meta]


def test_empty_metadata_file_counts_as_empty_mapping(project: Path) -> None:
    _write(project / "meta.yaml", "")

    assert collect_metadata(project) == {}


def test_sequence_metadata_is_rejected(layout: ProjectLayout, project: Path) -> None:
    talk = project / "talk"
    _write(talk / "meta.yaml", "- one\n- two\n")

    with pytest.raises(InvalidMetadataDocumentError) as excinfo:
        read_metadata_for_dir(layout, talk)

    assert excinfo.value.directory == talk
    assert str(talk) in str(excinfo.value)


def test_directory_outside_project_is_rejected(layout: ProjectLayout, tmp_path: Path) -> None:
    with pytest.raises(ProjectLayoutError):
        read_metadata_for_dir(layout, tmp_path)


def test_join_metadata_laws() -> None:
    a = {"title": "A", "tags": ["x"]}
    b = {"title": "B", "author": "Ada"}
    c = {"author": "Grace", "lang": "en"}

    assert join_metadata(a, a) == a
    assert join_metadata(a, b) == {"title": "A", "tags": ["x"], "author": "Ada"}
    assert join_metadata(join_metadata(a, b), c) == join_metadata(a, join_metadata(b, c))


def test_join_metadata_is_shallow() -> None:
    new = {"theme": {"name": "dark"}}
    old = {"theme": {"name": "light", "size": 12}}

    assert join_metadata(new, old) == {"theme": {"name": "dark"}}


def test_join_metadata_keeps_the_mapping_side() -> None:
    assert join_metadata(["not", "a", "mapping"], {"a": 1}) == {"a": 1}
    with pytest.raises(InvalidMetadataDocumentError):
        join_metadata("x", None)


def test_embedded_metadata_wins() -> None:
    merged = merge_document_metadata({"title": "Doc"}, {"title": "Dir", "author": "A"})

    assert merged == {"title": "Doc", "author": "A"}


def test_template_context_conversion() -> None:
    context = to_template_context(
        {"when": date(2024, 5, 1), "count": 3, "draft": False, "empty": None, "list": [1, "a"]}
    )

    assert context == {
        "when": "2024-05-01",
        "count": "3",
        "draft": False,
        "empty": "",
        "list": ["1", "a"],
    }


def test_metadata_value_as_string() -> None:
    metadata = {"author": {"name": "Ada", "born": 1815}, "tags": ["a"]}

    assert metadata_value_as_string("author.name", metadata) == "Ada"
    assert metadata_value_as_string("author.born", metadata) == "1815"
    assert metadata_value_as_string("tags", metadata) is None
    assert metadata_value_as_string("missing.key", metadata) is None


def test_metadata_files_must_be_utf8(project: Path) -> None:
    bad = project / "meta.yaml"
    bad.write_bytes(b"title: \xff\xfe\n")

    with pytest.raises(InvalidMetadataDocumentError, match="UTF-8") as excinfo:
        collect_metadata(project)

    assert excinfo.value.file == bad
