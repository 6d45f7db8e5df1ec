"""Primary public API for decksmith."""

from __future__ import annotations

from decksmith.core.config import PreprocessConfig
from decksmith.core.dependencies import DependencyTracker, InputRecorder, NullTracker
from decksmith.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from decksmith.core.documents import Document, parse_document, render_document
from decksmith.core.exceptions import (
    CircularIncludeError,
    DecksmithError,
    InvalidMetadataDocumentError,
    InvalidProvisioningModeError,
    ResourceNotFoundError,
)
from decksmith.core.metadata import read_metadata_for_dir
from decksmith.core.preprocess import DocumentPreprocessor, preprocess_document
from decksmith.core.project import ProjectLayout
from decksmith.core.remote import RemoteCache
from decksmith.core.resources import Provisioning, provision_resource
from decksmith.version import get_version


__version__ = get_version()

__all__ = [
    "CircularIncludeError",
    "DecksmithError",
    "DependencyTracker",
    "DiagnosticEmitter",
    "Document",
    "DocumentPreprocessor",
    "InputRecorder",
    "InvalidMetadataDocumentError",
    "InvalidProvisioningModeError",
    "LoggingEmitter",
    "NullEmitter",
    "NullTracker",
    "PreprocessConfig",
    "ProjectLayout",
    "Provisioning",
    "RemoteCache",
    "ResourceNotFoundError",
    "__version__",
    "get_version",
    "parse_document",
    "preprocess_document",
    "provision_resource",
    "read_metadata_for_dir",
    "render_document",
]
