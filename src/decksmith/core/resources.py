"""Resolution of resource references and their provisioning into the public tree.

Absolute references are looked up against the project root first and then
against the real filesystem root. Relative references are looked up next to
the referencing document first and then against the project root. Copy and
link operations mirror the source layout below the public directory.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .dependencies import DependencyTracker, ensure_tracker
from .diagnostics import DiagnosticEmitter, record_event
from .exceptions import InvalidProvisioningModeError, ResourceNotFoundError
from .project import ProjectLayout, absolute_path, make_relative_to
from .utils import atomic_copy, atomic_symlink


__all__ = [
    "Provisioning",
    "Resource",
    "copy_resource",
    "find_resource",
    "link_resource",
    "provision_resource",
    "provisioning_from_meta",
    "read_resource",
    "ref_resource",
    "resolve_locally",
    "resource_paths",
]


class Provisioning(Enum):
    """Strategies exposing a local resource to the rendered output."""

    COPY = "Copy"
    SYMBOLIC_LINK = "SymbolicLink"
    REFERENCE = "Reference"

    @classmethod
    def accepted_values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)

    @classmethod
    def parse(cls, value: Any) -> Provisioning:
        """Return the mode named by ``value`` or raise with the accepted names."""
        if isinstance(value, Provisioning):
            return value
        if isinstance(value, str):
            candidate = value.strip().lower()
            for member in cls:
                if member.value.lower() == candidate:
                    return member
        raise InvalidProvisioningModeError(value, cls.accepted_values())


def provisioning_from_meta(
    metadata: Mapping[str, Any] | None, key: str = "provisioning"
) -> Provisioning:
    """Read the provisioning mode of a document, defaulting to copying."""
    if not metadata or key not in metadata:
        return Provisioning.COPY
    return Provisioning.parse(metadata[key])


@dataclass(frozen=True, slots=True)
class Resource:
    """Source location of a resource and where it is published."""

    source_file: Path
    public_file: Path
    public_url: str


def resolve_locally(root: str | Path, base: str | Path, path: str) -> Path | None:
    """Return the first existing candidate file for ``path``, if any."""
    reference = Path(path)
    if reference.is_absolute():
        candidates = [Path(root) / reference.relative_to(reference.anchor), reference]
    else:
        candidates = [Path(base) / reference, Path(root) / reference]
    for candidate in candidates:
        if candidate.is_file():
            return absolute_path(candidate)
    return None


def find_resource(root: str | Path, base: str | Path, path: str) -> Path:
    """Resolve ``path`` like :func:`resolve_locally` but fail when nothing exists."""
    resolved = resolve_locally(root, base, path)
    if resolved is None:
        raise ResourceNotFoundError(path)
    return resolved


def read_resource(root: str | Path, base: str | Path, path: str) -> bytes:
    """Return the bytes of the resource ``path`` refers to."""
    resolved = resolve_locally(root, base, path)
    if resolved is None:
        raise ResourceNotFoundError(path, f"Cannot read local resource: {path}")
    return resolved.read_bytes()


def resource_paths(layout: ProjectLayout, base: str | Path, source: Path) -> Resource:
    """Derive the public file and URL of ``source`` referenced from ``base``."""
    public_file = layout.public_file_for(source)
    if layout.contains(base):
        public_url = make_relative_to(layout.output_dir_for(base), public_file)
    else:
        public_url = make_relative_to(base, source)
    return Resource(source_file=source, public_file=public_file, public_url=public_url)


def copy_resource(resource: Resource) -> str:
    atomic_copy(resource.source_file, resource.public_file)
    return resource.public_url


def link_resource(resource: Resource) -> str:
    atomic_symlink(resource.source_file, resource.public_file)
    return resource.public_url


def ref_resource(resource: Resource) -> str:
    return resource.source_file.as_uri()


_PROVISIONERS = {
    Provisioning.COPY: copy_resource,
    Provisioning.SYMBOLIC_LINK: link_resource,
    Provisioning.REFERENCE: ref_resource,
}


def provision_resource(
    mode: Provisioning,
    layout: ProjectLayout,
    base: str | Path,
    path: str,
    *,
    emitter: DiagnosticEmitter | None = None,
    tracker: DependencyTracker | None = None,
) -> str:
    """Materialise the resource ``path`` for a document in ``base``.

    The resolved source is declared as a build input. Returns the URL the
    rendered document should use to reach it.
    """
    source = find_resource(layout.root, base, path)
    ensure_tracker(tracker).declare_input(source)
    resource = resource_paths(layout, base, source)
    if emitter is not None:
        record_event(
            emitter,
            "resource_provision",
            {"source": str(source), "mode": mode.value, "public": str(resource.public_file)},
        )
    return _PROVISIONERS[mode](resource)
