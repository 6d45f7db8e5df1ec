"""Structured documents handed to renderers, and walkers rewriting their resources."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
import html
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import PageElement, Tag

from decksmith.adapters.markdown import render_markdown, split_front_matter

from .config import ELEMENT_ATTRIBUTES
from .exceptions import UnsupportedFormatError
from .metadata import metadata_value_as_string


__all__ = [
    "Document",
    "RENDER_FORMATS",
    "is_macro",
    "map_meta_resources",
    "map_resources",
    "parse_document",
    "parse_metadata",
    "render_document",
]

RENDER_FORMATS = ("html", "html5")


@dataclass(slots=True)
class Document:
    """Metadata plus the top-level nodes of a rendered document."""

    metadata: dict[str, Any] = field(default_factory=dict)
    blocks: list[PageElement] = field(default_factory=list)
    source_path: Path | None = None

    def iter_elements(self) -> Iterator[Tag]:
        """Yield every element of the document in document order."""
        for block in self.blocks:
            if isinstance(block, Tag):
                yield block
                yield from block.find_all(True)

    def to_html(self) -> str:
        return "".join(str(block) for block in self.blocks)


def parse_metadata(text: str) -> dict[str, Any]:
    """Return the front matter embedded in ``text``."""
    metadata, _body = split_front_matter(text)
    return metadata


def parse_document(
    text: str,
    *,
    extensions: Sequence[str] | None = None,
    source_path: Path | None = None,
) -> Document:
    """Parse Markdown ``text`` into a :class:`Document`."""
    rendered = render_markdown(text, extensions)
    soup = BeautifulSoup(rendered.html, "html.parser")
    return Document(
        metadata=dict(rendered.front_matter),
        blocks=list(soup.contents),
        source_path=source_path,
    )


def _stylesheets(metadata: Mapping[str, Any]) -> list[str]:
    value = metadata.get("css")
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def _standalone_page(document: Document) -> str:
    title = metadata_value_as_string("title", document.metadata) or ""
    lang = metadata_value_as_string("lang", document.metadata) or "en"
    head = [
        '<meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
    ]
    head.extend(
        f'<link rel="stylesheet" href="{html.escape(href, quote=True)}">'
        for href in _stylesheets(document.metadata)
    )
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{html.escape(lang, quote=True)}">\n'
        "<head>\n" + "\n".join(head) + "\n</head>\n"
        "<body>\n" + document.to_html() + "\n</body>\n"
        "</html>\n"
    )


def render_document(document: Document, fmt: str = "html") -> bytes:
    """Serialise ``document`` to ``fmt``: an HTML fragment or a standalone page."""
    if fmt == "html":
        return document.to_html().encode("utf-8")
    if fmt == "html5":
        return _standalone_page(document).encode("utf-8")
    raise UnsupportedFormatError(
        f"Unsupported output format '{fmt}'; expected one of: {', '.join(RENDER_FORMATS)}"
    )


def is_macro(text: str) -> bool:
    """Return whether link or image text names a macro such as ``:youtube``."""
    return text.strip().startswith(":")


def _candidate(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped.startswith("#"):
        return None
    return stripped


def _map_attributes(
    element: Tag, transform: Callable[[str], str], attributes: Iterable[str]
) -> None:
    for name in attributes:
        value = _candidate(element.get(name))
        if value is not None:
            element[name] = transform(value)


def map_resources(
    document: Document,
    transform: Callable[[str], str],
    *,
    attributes: Iterable[str] = ELEMENT_ATTRIBUTES,
) -> Document:
    """Rewrite every resource-bearing attribute of ``document`` in place.

    Images and links whose text names a macro are left alone. Links are only
    treated as resources when they carry the ``resource`` class.
    """
    names = tuple(attributes)
    for element in list(document.iter_elements()):
        if element.name == "img":
            if is_macro(str(element.get("alt") or "")):
                continue
        elif element.name == "a":
            if is_macro(element.get_text()) or "resource" not in element.get_attribute_list(
                "class"
            ):
                continue
            href = _candidate(element.get("href"))
            if href is not None:
                element["href"] = transform(href)
        _map_attributes(element, transform, names)
    return document


def map_meta_resources(
    metadata: Mapping[str, Any],
    transform: Callable[[str, str], str],
    *,
    keys: Iterable[str],
) -> dict[str, Any]:
    """Return ``metadata`` with the values of ``keys`` passed through ``transform``.

    String values and strings inside lists are transformed; anything else is
    kept unchanged.
    """
    mapped = dict(metadata)
    for key in keys:
        value = mapped.get(key)
        if isinstance(value, str):
            mapped[key] = transform(key, value)
        elif isinstance(value, list):
            mapped[key] = [
                transform(key, item) if isinstance(item, str) else item for item in value
            ]
    return mapped
