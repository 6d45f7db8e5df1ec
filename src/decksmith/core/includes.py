"""Splicing of included documents into their parent document."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from bs4.element import NavigableString, PageElement, Tag

from .dependencies import DependencyTracker, ensure_tracker
from .diagnostics import DiagnosticEmitter, record_event
from .exceptions import CircularIncludeError
from .resources import find_resource


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .documents import Document


__all__ = ["INCLUDE_MARKER", "expand_includes", "include_target"]

INCLUDE_MARKER = ":include"

ReadDocument = Callable[[Path, tuple[Path, ...]], "Document"]


def include_target(block: PageElement) -> str | None:
    """Return the target of an include paragraph, or ``None`` for other blocks.

    An include is a paragraph holding nothing but one link whose text is
    ``:include``.
    """
    if not isinstance(block, Tag) or block.name != "p":
        return None
    children = [
        child
        for child in block.contents
        if not (isinstance(child, NavigableString) and not child.strip())
    ]
    if len(children) != 1:
        return None
    link = children[0]
    if not isinstance(link, Tag) or link.name != "a":
        return None
    if link.get_text() != INCLUDE_MARKER:
        return None
    href = link.get("href")
    if not isinstance(href, str) or not href.strip():
        return None
    return href.strip()


def expand_includes(
    blocks: Iterable[PageElement],
    *,
    root: Path,
    base: Path,
    chain: Sequence[Path],
    read_document: ReadDocument,
    tracker: DependencyTracker | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> list[PageElement]:
    """Replace include paragraphs in ``blocks`` with the blocks they refer to.

    ``chain`` lists the documents currently being read, outermost first.
    ``read_document`` receives the resolved include path together with the
    extended chain and returns the fully expanded included document.
    """
    declared = ensure_tracker(tracker)
    active = tuple(chain)
    expanded: list[PageElement] = []
    for block in blocks:
        target = include_target(block)
        if target is None:
            expanded.append(block)
            continue
        path = find_resource(root, base, target)
        if path in active:
            raise CircularIncludeError((*active, path))
        declared.declare_input(path)
        if emitter is not None:
            record_event(emitter, "include_expand", {"target": str(path), "depth": len(active)})
        included = read_document(path, (*active, path))
        expanded.extend(included.blocks)
    return expanded
