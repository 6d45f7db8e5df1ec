"""Project root discovery and the canonical directory layout derived from it."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from .config import PreprocessConfig
from .exceptions import ProjectLayoutError


__all__ = [
    "EXTERNAL_DIR",
    "ProjectLayout",
    "absolute_path",
    "find_project_root",
    "is_prefix",
    "make_relative_to",
]

EXTERNAL_DIR = "_external"


def absolute_path(path: str | Path) -> Path:
    """Return ``path`` made absolute with ``..`` segments folded, symlinks kept."""
    return Path(os.path.abspath(path))


def find_project_root(start: str | Path | None = None, *, marker: str = ".git") -> Path:
    """Return the first ancestor of ``start`` holding a ``marker`` directory.

    Falls back to ``start`` (the working directory by default) made absolute when
    no ancestor carries the marker.
    """
    origin = Path(start) if start is not None else Path.cwd()
    origin = absolute_path(origin)
    for candidate in (origin, *origin.parents):
        if (candidate / marker).is_dir():
            return candidate
    return origin


def make_relative_to(directory: str | Path, file: str | Path) -> str:
    """Express the absolute ``file`` relative to the absolute ``directory``."""
    return Path(os.path.relpath(file, directory)).as_posix()


def is_prefix(prefix: str | Path, path: str | Path) -> bool:
    """Return whether the components of ``prefix`` lead the components of ``path``."""
    head = Path(prefix).parts
    return Path(path).parts[: len(head)] == head


@dataclass(frozen=True, slots=True)
class ProjectLayout:
    """Absolute directories a build run works with."""

    root: Path
    public_dir: Path
    cache_dir: Path
    support_dir: Path

    @classmethod
    def from_root(
        cls, root: str | Path, config: PreprocessConfig | None = None
    ) -> ProjectLayout:
        """Derive the layout from an explicit project root."""
        settings = config or PreprocessConfig()
        resolved = absolute_path(root)
        public = resolved / settings.public_dir
        return cls(
            root=resolved,
            public_dir=public,
            cache_dir=public / settings.cache_dir,
            support_dir=public / settings.support_dir,
        )

    @classmethod
    def discover(
        cls, start: str | Path | None = None, config: PreprocessConfig | None = None
    ) -> ProjectLayout:
        """Locate the project root above ``start`` and derive the layout."""
        settings = config or PreprocessConfig()
        return cls.from_root(find_project_root(start, marker=settings.root_marker), settings)

    def contains(self, path: str | Path) -> bool:
        """Return whether ``path`` is the root or lies below it."""
        return is_prefix(self.root, absolute_path(path))

    def public_file_for(self, source: str | Path) -> Path:
        """Return the mirror of ``source`` inside the public tree."""
        absolute = absolute_path(source)
        if self.contains(absolute):
            relative = absolute.relative_to(self.root)
            if relative.parts[:1] == (EXTERNAL_DIR,):
                raise ProjectLayoutError(
                    f"Cannot publish '{absolute}': the top-level '{EXTERNAL_DIR}' directory "
                    "is reserved for resources outside the project root."
                )
            return self.public_dir / relative
        return self.public_dir / EXTERNAL_DIR / absolute.relative_to(absolute.anchor)

    def output_dir_for(self, base: str | Path) -> Path:
        """Return the public directory receiving output for documents in ``base``."""
        absolute = absolute_path(base)
        if not self.contains(absolute):
            raise ProjectLayoutError(
                f"Directory '{absolute}' lies outside the project root '{self.root}'."
            )
        return self.public_dir / absolute.relative_to(self.root)

    def relative_support_dir(self, output_file: str | Path) -> str:
        """Return the support directory as seen from ``output_file``."""
        return make_relative_to(absolute_path(output_file).parent, self.support_dir)

    def glob(self, pattern: str) -> list[Path]:
        """Return project files matching ``pattern``, ignoring the public tree."""
        return sorted(
            path
            for path in self.root.glob(pattern)
            if path.is_file() and not is_prefix(self.public_dir, path)
        )

    def glob_relative(self, pattern: str) -> list[Path]:
        """Return :meth:`glob` results relative to the project root."""
        return [path.relative_to(self.root) for path in self.glob(pattern)]
