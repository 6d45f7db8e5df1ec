"""Discovery and merging of directory-scoped and embedded document metadata."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

from bs4.element import PageElement
import yaml

from .config import METADATA_PATTERNS
from .dependencies import DependencyTracker, ensure_tracker
from .exceptions import InvalidMetadataDocumentError, ProjectLayoutError
from .project import ProjectLayout, absolute_path


__all__ = [
    "collect_metadata",
    "join_metadata",
    "merge_document_metadata",
    "metadata_value_as_string",
    "read_metadata_for_dir",
    "to_template_context",
]


def join_metadata(new: Any, old: Any) -> dict[str, Any]:
    """Combine two metadata trees, letting keys from ``new`` win.

    Only the top level is merged: nested mappings under a shared key are
    replaced as a whole. When just one side is a mapping it is kept as-is.
    """
    if isinstance(new, Mapping) and isinstance(old, Mapping):
        return {**old, **new}
    if isinstance(old, Mapping):
        return dict(old)
    if isinstance(new, Mapping):
        return dict(new)
    raise InvalidMetadataDocumentError("Can only join metadata mappings.")


def merge_document_metadata(embedded: Any, external: Any) -> Any:
    """Overlay metadata embedded in a document on top of directory metadata."""
    if isinstance(embedded, Mapping) and isinstance(external, Mapping):
        return {**external, **embedded}
    return embedded


def _metadata_files(directory: Path, patterns: Iterable[str]) -> list[Path]:
    matches = {
        candidate
        for pattern in patterns
        for candidate in directory.glob(pattern)
        if candidate.is_file()
    }
    return sorted(matches, key=lambda path: path.name)


def _load_metadata_file(path: Path, directory: Path) -> Mapping[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise InvalidMetadataDocumentError(
            f"Metadata file is not valid UTF-8: '{path}' ({exc})",
            directory=directory,
            file=path,
        ) from exc
    except yaml.YAMLError as exc:
        raise InvalidMetadataDocumentError(
            f"Cannot parse metadata file '{path}': {exc}",
            directory=directory,
            file=path,
        ) from exc
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise InvalidMetadataDocumentError(
            f"Top-level meta value must be an object: {directory} ({path.name})",
            directory=directory,
            file=path,
        )
    return payload


def collect_metadata(
    directory: str | Path,
    *,
    patterns: Iterable[str] = METADATA_PATTERNS,
    tracker: DependencyTracker | None = None,
) -> dict[str, Any]:
    """Merge every metadata file found directly inside ``directory``.

    Files are folded in name order so that later names win ties. Each file is
    declared as a build input before it is parsed.
    """
    target = absolute_path(directory)
    files = _metadata_files(target, patterns)
    declared = ensure_tracker(tracker)
    for path in files:
        declared.declare_input(path)

    combined: dict[str, Any] = {}
    for path in files:
        combined = join_metadata(_load_metadata_file(path, target), combined)
    return combined


def read_metadata_for_dir(
    layout: ProjectLayout,
    directory: str | Path,
    *,
    patterns: Iterable[str] = METADATA_PATTERNS,
    tracker: DependencyTracker | None = None,
) -> dict[str, Any]:
    """Return the metadata in effect for ``directory``.

    Walks from the project root down to ``directory``; metadata found closer to
    the directory overrides metadata found higher up.
    """
    target = absolute_path(directory)
    if not layout.contains(target):
        raise ProjectLayoutError(
            f"Cannot read metadata for '{target}': outside the project root '{layout.root}'."
        )
    active_patterns = tuple(patterns)

    def _walk_up_to(current: Path) -> dict[str, Any]:
        if current == layout.root:
            return collect_metadata(current, patterns=active_patterns, tracker=tracker)
        from_above = _walk_up_to(current.parent)
        from_here = collect_metadata(current, patterns=active_patterns, tracker=tracker)
        return join_metadata(from_here, from_above)

    return _walk_up_to(target)


def to_template_context(value: Any) -> Any:
    """Convert a metadata tree into values the template engine understands."""
    if isinstance(value, Mapping):
        return {str(key): to_template_context(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [to_template_context(item) for item in value]
    if value is None:
        return ""
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, PageElement):
        return value.get_text()
    return str(value)


def metadata_value_as_string(key: str, metadata: Mapping[str, Any] | None) -> str | None:
    """Look up a dotted ``key`` and return scalar leaves as strings."""
    current: Any = metadata
    for part in key.split("."):
        if not part or not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    if isinstance(current, (str, bool, int, float)):
        return str(current)
    if isinstance(current, (datetime, date)):
        return current.isoformat()
    return None
