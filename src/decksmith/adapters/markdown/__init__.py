"""Markdown to HTML conversion for decksmith documents.

Python-Markdown processors are expensive to build, so one processor is kept
per extension set and shared between threads behind its own lock.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import re
from threading import Lock
from typing import Any

import markdown
import yaml

from decksmith.core.config import DEFAULT_MARKDOWN_EXTENSIONS
from decksmith.core.exceptions import DocumentParseError


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MarkdownConversionError",
    "MarkdownDocument",
    "deduplicate_markdown_extensions",
    "normalize_markdown_extensions",
    "render_markdown",
    "split_front_matter",
]

_FRONT_MATTER = re.compile(
    r"\A(?P<bom>\ufeff?)---[ \t]*\r?\n(?P<yaml>.*?)(?:\r?\n)?^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
_EXTENSION_SEPARATORS = re.compile(r"[,\s]+")


class MarkdownConversionError(DocumentParseError):
    """Raised when Markdown cannot be converted into HTML."""


@dataclass(slots=True)
class MarkdownDocument:
    """HTML produced from a Markdown source and the front matter it carried."""

    html: str
    front_matter: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class _SharedProcessor:
    processor: markdown.Markdown
    lock: Lock = field(default_factory=Lock)

    def convert(self, body: str) -> str:
        with self.lock:
            self.processor.reset()
            return self.processor.convert(body)


_PROCESSORS: dict[tuple[str, ...], _SharedProcessor] = {}
_PROCESSORS_LOCK = Lock()


def normalize_markdown_extensions(values: Iterable[str] | str | None) -> list[str]:
    """Flatten extension names given as lists or comma/space separated strings."""
    if values is None:
        return []
    items = [values] if isinstance(values, str) else values
    names: list[str] = []
    for item in items:
        if isinstance(item, str):
            names.extend(name for name in _EXTENSION_SEPARATORS.split(item) if name)
    return names


def deduplicate_markdown_extensions(values: Iterable[str]) -> list[str]:
    """Drop repeated extension names, comparing case-insensitively."""
    unique: dict[str, str] = {}
    for value in values:
        if isinstance(value, str):
            unique.setdefault(value.lower(), value)
    return list(unique.values())


def _shared_processor(extensions: tuple[str, ...]) -> _SharedProcessor:
    with _PROCESSORS_LOCK:
        shared = _PROCESSORS.get(extensions)
        if shared is None:
            try:
                processor = markdown.Markdown(extensions=list(extensions))
            except (ImportError, AttributeError, TypeError, ValueError) as exc:
                raise MarkdownConversionError(
                    f"Cannot load Markdown extensions {', '.join(extensions)}: {exc}"
                ) from exc
            shared = _PROCESSORS[extensions] = _SharedProcessor(processor)
        return shared


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Return the YAML front matter of ``source`` and the Markdown body after it.

    Sources without a front matter block are returned unchanged with empty
    metadata. A block that is not valid YAML, or whose top level is not a
    mapping, raises :class:`MarkdownConversionError`.
    """
    match = _FRONT_MATTER.match(source)
    if match is None:
        return {}, source
    try:
        metadata = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as exc:
        raise MarkdownConversionError(f"Invalid YAML front matter: {exc}") from exc
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise MarkdownConversionError("YAML front matter must be a mapping.")
    return metadata, match.group("bom") + source[match.end() :]


def render_markdown(
    source: str,
    extensions: Sequence[str] | None = None,
) -> MarkdownDocument:
    """Convert ``source`` to HTML, stripping and returning its front matter."""
    metadata, body = split_front_matter(source)
    requested = DEFAULT_MARKDOWN_EXTENSIONS if extensions is None else extensions
    active = tuple(deduplicate_markdown_extensions(normalize_markdown_extensions(requested)))
    shared = _shared_processor(active)
    try:
        html = shared.convert(body)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc
    return MarkdownDocument(html=html, front_matter=metadata)
