"""Mustache substitution of document text against merged metadata."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import chevron
from chevron.tokenizer import ChevronError, tokenize

from .dependencies import DependencyTracker, ensure_tracker
from .exceptions import TemplateCompileError, TemplateRenderError


__all__ = [
    "PARTIAL_SUFFIX",
    "compile_template",
    "fix_mustache_markup",
    "load_partials",
    "substitute_metadata",
]

PARTIAL_SUFFIX = ".mustache"

_ESCAPED_MARKERS = (("{{\\#", "{{#"), ("{{\\^", "{{^"))


def fix_mustache_markup(text: str) -> str:
    """Undo Markdown escaping of section markers inside ``{{ }}`` tags."""
    for escaped, plain in _ESCAPED_MARKERS:
        text = text.replace(escaped, plain)
    return text


def compile_template(text: str) -> list[tuple[str, str]]:
    """Tokenize ``text`` eagerly so syntax errors surface before rendering."""
    try:
        return list(tokenize(text))
    except ChevronError as exc:
        raise TemplateCompileError(f"Cannot compile template: {exc}") from exc


def _partial_names(tokens: list[tuple[str, str]]) -> list[str]:
    return [token[1] for token in tokens if token[0] == "partial"]


def load_partials(
    tokens: list[tuple[str, str]],
    partials_path: str | Path | None,
    *,
    tracker: DependencyTracker | None = None,
) -> dict[str, str]:
    """Read every partial ``tokens`` refers to, following nested partials.

    Partials are ``<name>.mustache`` files in ``partials_path``. Each one is
    declared as a build input. A partial that does not exist raises
    :class:`TemplateRenderError`.
    """
    declared = ensure_tracker(tracker)
    partials: dict[str, str] = {}
    pending = _partial_names(tokens)
    while pending:
        name = pending.pop()
        if name in partials:
            continue
        if partials_path is None:
            raise TemplateRenderError(f"Cannot render partial '{name}': no partials directory.")
        path = Path(partials_path) / f"{name}{PARTIAL_SUFFIX}"
        if not path.is_file():
            raise TemplateRenderError(f"Cannot find partial '{name}': {path}")
        declared.declare_input(path)
        text = fix_mustache_markup(path.read_text(encoding="utf-8"))
        partials[name] = text
        pending.extend(_partial_names(compile_template(text)))
    return partials


def substitute_metadata(
    text: str,
    context: Mapping[str, Any],
    *,
    partials_path: str | Path | None = None,
    tracker: DependencyTracker | None = None,
) -> str:
    """Render ``text`` as a mustache template over ``context``."""
    tokens = compile_template(fix_mustache_markup(text))
    partials = load_partials(tokens, partials_path, tracker=tracker)
    try:
        return chevron.render(tokens, dict(context), partials_dict=partials)
    except ChevronError as exc:
        raise TemplateRenderError(f"Cannot render template: {exc}") from exc
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TemplateRenderError(f"Cannot render template: {exc}") from exc
