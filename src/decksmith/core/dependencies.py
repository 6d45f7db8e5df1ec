"""Hooks reporting build inputs to an external dependency engine."""

from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Protocol, runtime_checkable


@runtime_checkable
class DependencyTracker(Protocol):
    """Receives every file a document depends on."""

    def declare_input(self, path: Path) -> None: ...


class NullTracker:
    """Tracker that discards every declaration."""

    def declare_input(self, path: Path) -> None:
        return


class InputRecorder:
    """Collect declared inputs in declaration order, without duplicates."""

    def __init__(self) -> None:
        self._inputs: dict[Path, None] = {}
        self._lock = Lock()

    def declare_input(self, path: Path) -> None:
        with self._lock:
            self._inputs.setdefault(Path(path), None)

    @property
    def inputs(self) -> list[Path]:
        with self._lock:
            return list(self._inputs)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return Path(path) in self._inputs


def ensure_tracker(tracker: DependencyTracker | None) -> DependencyTracker:
    """Return a usable tracker, defaulting to the null implementation."""
    return tracker if tracker is not None else NullTracker()


__all__ = ["DependencyTracker", "InputRecorder", "NullTracker", "ensure_tracker"]
