"""Filesystem helpers that never expose partially written targets."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import os
from pathlib import Path
import shutil
import tempfile


@contextmanager
def _staging_path(target: Path) -> Iterator[Path]:
    """Yield a unique scratch path next to ``target`` and clean it up on failure."""
    target.parent.mkdir(parents=True, exist_ok=True)
    handle, name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    os.close(handle)
    staged = Path(name)
    try:
        yield staged
    except BaseException:
        staged.unlink(missing_ok=True)
        raise


def atomic_write_bytes(target: Path, payload: bytes) -> Path:
    """Write ``payload`` to ``target`` through a sibling temp file and rename."""
    with _staging_path(target) as staged:
        staged.write_bytes(payload)
        os.replace(staged, target)
    return target


def atomic_copy(source: Path, target: Path) -> Path:
    """Copy ``source`` over ``target`` so observers see either old or new content."""
    with _staging_path(target) as staged:
        shutil.copyfile(source, staged)
        shutil.copymode(source, staged)
        os.replace(staged, target)
    return target


def atomic_symlink(source: Path, target: Path) -> Path:
    """Point ``target`` at ``source``, replacing whatever entry was there."""
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    with _staging_path(target) as staged:
        staged.unlink()
        staged.symlink_to(source)
        os.replace(staged, target)
    return target


__all__ = ["atomic_copy", "atomic_symlink", "atomic_write_bytes"]
