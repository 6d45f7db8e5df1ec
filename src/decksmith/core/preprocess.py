"""Read source documents and prepare them for rendering.

Preparation happens in two passes. :meth:`DocumentPreprocessor.read_document`
works per file: it merges metadata, substitutes templates, pins every local
resource to an absolute source path and splices included documents.
:meth:`DocumentPreprocessor.preprocess` then publishes those resources
relative to the top-level document according to its provisioning mode.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .config import PreprocessConfig
from .dependencies import DependencyTracker, ensure_tracker
from .diagnostics import DiagnosticEmitter, ensure_emitter
from .documents import (
    Document,
    map_meta_resources,
    map_resources,
    parse_document,
    parse_metadata,
    render_document,
)
from .exceptions import DocumentParseError, ResourceNotFoundError
from .includes import expand_includes
from .metadata import merge_document_metadata, read_metadata_for_dir, to_template_context
from .mustache import substitute_metadata
from .project import ProjectLayout, absolute_path
from .remote import RemoteCache, cache_remote_images, is_local_uri
from .resources import find_resource, provision_resource, provisioning_from_meta


__all__ = ["DocumentPreprocessor", "preprocess_document"]


class DocumentPreprocessor:
    """Prepare Markdown documents of one project for rendering."""

    def __init__(
        self,
        layout: ProjectLayout | None = None,
        *,
        config: PreprocessConfig | None = None,
        tracker: DependencyTracker | None = None,
        emitter: DiagnosticEmitter | None = None,
        session: Any | None = None,
    ) -> None:
        self.config = config or PreprocessConfig()
        self.layout = layout or ProjectLayout.discover(config=self.config)
        self.tracker = ensure_tracker(tracker)
        self.emitter = ensure_emitter(emitter)
        self.remote_cache = RemoteCache(
            self.layout.cache_dir,
            session=session,
            timeout=self.config.http_timeout,
            user_agent=self.config.user_agent,
            emitter=self.emitter,
        )

    def read_document(
        self, path: str | Path, chain: Iterable[Path] | None = None
    ) -> Document:
        """Read ``path`` with includes expanded and local resources made absolute."""
        source = absolute_path(path)
        active = (source,) if chain is None else tuple(chain)
        base = source.parent
        self.tracker.declare_input(source)

        external = read_metadata_for_dir(
            self.layout,
            base,
            patterns=self.config.metadata_patterns,
            tracker=self.tracker,
        )
        try:
            text = source.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ResourceNotFoundError(source, f"Cannot read document: {source}") from exc
        except UnicodeDecodeError as exc:
            raise DocumentParseError(f"Document is not valid UTF-8: {source} ({exc})") from exc

        combined = merge_document_metadata(parse_metadata(text), external)
        substituted = substitute_metadata(
            text, to_template_context(combined), partials_path=base, tracker=self.tracker
        )
        document = parse_document(
            substituted,
            extensions=self.config.markdown_extensions,
            source_path=source,
        )
        document.metadata = dict(combined)

        def locate(value: str) -> str:
            if not is_local_uri(value):
                return value
            resolved = find_resource(self.layout.root, base, value)
            self.tracker.declare_input(resolved)
            return str(resolved)

        map_resources(document, locate, attributes=self.config.element_attributes)
        document.blocks = expand_includes(
            document.blocks,
            root=self.layout.root,
            base=base,
            chain=active,
            read_document=self.read_document,
            tracker=self.tracker,
            emitter=self.emitter,
        )
        return document

    def preprocess(self, path: str | Path) -> Document:
        """Read ``path`` and publish its resources according to its provisioning mode."""
        document = self.read_document(path)
        base = absolute_path(path).parent
        mode = provisioning_from_meta(document.metadata, self.config.provisioning_key)

        def provision(value: str) -> str:
            if not is_local_uri(value):
                return value
            return provision_resource(
                mode, self.layout, base, value, emitter=self.emitter, tracker=self.tracker
            )

        def provision_meta(key: str, value: str) -> str:
            if not is_local_uri(value):
                return value
            if key in self.config.runtime_meta_keys:
                return provision(value)
            resolved = find_resource(self.layout.root, base, value)
            self.tracker.declare_input(resolved)
            return str(resolved)

        document.metadata = map_meta_resources(
            document.metadata, provision_meta, keys=self.config.meta_keys
        )
        map_resources(document, provision, attributes=self.config.element_attributes)
        if self.config.cache_remote_resources:
            cache_remote_images(
                document, self.remote_cache, output_dir=self.layout.output_dir_for(base)
            )
        return document

    def render(self, path: str | Path, fmt: str = "html") -> bytes:
        """Preprocess ``path`` and serialise the result to ``fmt``."""
        return render_document(self.preprocess(path), fmt)


def preprocess_document(
    path: str | Path,
    *,
    layout: ProjectLayout | None = None,
    config: PreprocessConfig | None = None,
    tracker: DependencyTracker | None = None,
    emitter: DiagnosticEmitter | None = None,
    session: Any | None = None,
) -> Document:
    """Preprocess a single document with a throwaway :class:`DocumentPreprocessor`."""
    settings = config or PreprocessConfig()
    if layout is None:
        layout = ProjectLayout.discover(absolute_path(path).parent, settings)
    preprocessor = DocumentPreprocessor(
        layout,
        config=settings,
        tracker=tracker,
        emitter=emitter,
        session=session,
    )
    return preprocessor.preprocess(path)
