"""Custom exception hierarchy for the document preparation pipeline."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path


class DecksmithError(RuntimeError):
    """Base exception for document preparation failures."""


class ProjectLayoutError(DecksmithError):
    """Raised when a path falls outside the project layout."""


class ResourceNotFoundError(DecksmithError):
    """Raised when no candidate location holds the requested resource."""

    def __init__(self, path: str | Path, message: str | None = None) -> None:
        self.path = str(path)
        super().__init__(message or f"Cannot find local resource: {self.path}")


class MetadataError(DecksmithError):
    """Base class for metadata discovery failures."""


class InvalidMetadataDocumentError(MetadataError):
    """Raised when a metadata file does not hold a mapping at its top level."""

    def __init__(
        self,
        message: str,
        *,
        directory: Path | None = None,
        file: Path | None = None,
    ) -> None:
        self.directory = directory
        self.file = file
        super().__init__(message)


class TemplateError(DecksmithError):
    """Base class for template substitution failures."""


class TemplateCompileError(TemplateError):
    """Raised when document text cannot be compiled as a template."""


class TemplateRenderError(TemplateError):
    """Raised when a compiled template fails to render."""


class InvalidProvisioningModeError(DecksmithError):
    """Raised when the provisioning metadata value is not a known mode."""

    def __init__(self, value: object, accepted: Iterable[str]) -> None:
        self.value = value
        self.accepted = tuple(accepted)
        super().__init__(
            f"Invalid provisioning mode {value!r}; expected one of: "
            + ", ".join(self.accepted)
        )


class RemoteFetchError(DecksmithError):
    """Raised when a remote resource cannot be downloaded."""

    def __init__(self, url: str, message: str, *, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(message)


class TLSCertificateError(RemoteFetchError):
    """Raised when TLS certificate verification fails during downloads."""


class DocumentParseError(DecksmithError):
    """Raised when document text cannot be turned into a structured document."""


class CircularIncludeError(DecksmithError):
    """Raised when an include chain refers back to one of its ancestors."""

    def __init__(self, chain: Iterable[Path]) -> None:
        self.chain = tuple(chain)
        rendered = " -> ".join(str(path) for path in self.chain)
        super().__init__(f"Circular include detected: {rendered}")


class UnsupportedFormatError(DecksmithError):
    """Raised when a document is rendered to an unknown output format."""


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def exception_messages(exc: BaseException) -> list[str]:
    """Return the first line of every non-empty message along the cause chain."""
    lines = (str(error).strip().partition("\n")[0].strip() for error in _exception_chain(exc))
    return [line for line in lines if line]


def exception_hint(exc: BaseException) -> str | None:
    """Return the message of the innermost cause in the chain of ``exc``."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CircularIncludeError",
    "DecksmithError",
    "DocumentParseError",
    "InvalidMetadataDocumentError",
    "InvalidProvisioningModeError",
    "MetadataError",
    "ProjectLayoutError",
    "RemoteFetchError",
    "ResourceNotFoundError",
    "TLSCertificateError",
    "TemplateCompileError",
    "TemplateError",
    "TemplateRenderError",
    "UnsupportedFormatError",
    "exception_hint",
    "exception_messages",
]
