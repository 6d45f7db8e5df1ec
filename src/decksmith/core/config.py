"""Configuration models used by the document preprocessor.

PreprocessConfig

`root_marker` (`str`)
: Directory entry marking the project root. The first ancestor of the working
  directory holding it becomes the root.

`public_dir`, `cache_dir`, `support_dir` (`str`)
: Names of the public output tree (relative to the root) and of the cache and
  support directories (relative to the public tree).

`metadata_patterns` (`tuple[str, ...]`)
: Glob patterns selecting the directory-scoped metadata files.

`provisioning_key` (`str`)
: Metadata key selecting the provisioning mode of a document.

`element_attributes` (`tuple[str, ...]`)
: Element attributes whose local paths are resolved and provisioned.

`runtime_meta_keys` (`tuple[str, ...]`)
: Metadata keys naming resources needed by the rendered output. They are
  provisioned into the public tree.

`compiletime_meta_keys` (`tuple[str, ...]`)
: Metadata keys naming resources consumed while rendering (bibliographies,
  citation styles). They must exist locally and are never provisioned.

`markdown_extensions` (`tuple[str, ...]`)
: Python-Markdown extensions enabled when parsing documents.

`http_timeout` (`float`)
: Timeout in seconds applied to remote downloads.

`user_agent` (`str | None`)
: User agent sent with remote downloads.

`cache_remote_resources` (`bool`)
: Mirror remote http(s) images into the cache directory while preprocessing.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


ELEMENT_ATTRIBUTES: tuple[str, ...] = (
    "src",
    "data-src",
    "data-markdown",
    "data-background-video",
    "data-background-image",
    "data-background-iframe",
)
RUNTIME_META_KEYS: tuple[str, ...] = ("css",)
COMPILETIME_META_KEYS: tuple[str, ...] = (
    "bibliography",
    "csl",
    "citation-abbreviations",
)
METADATA_PATTERNS: tuple[str, ...] = ("*-meta.yaml", "meta.yaml")
DEFAULT_MARKDOWN_EXTENSIONS: tuple[str, ...] = (
    "abbr",
    "attr_list",
    "def_list",
    "fenced_code",
    "footnotes",
    "md_in_html",
    "tables",
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


class PreprocessConfig(BaseModel):
    """Settings shared by every document of a build run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    root_marker: str = ".git"
    public_dir: str = "public"
    cache_dir: str = "cache"
    support_dir: str = "support"
    metadata_patterns: tuple[str, ...] = METADATA_PATTERNS
    provisioning_key: str = "provisioning"
    element_attributes: tuple[str, ...] = ELEMENT_ATTRIBUTES
    runtime_meta_keys: tuple[str, ...] = RUNTIME_META_KEYS
    compiletime_meta_keys: tuple[str, ...] = COMPILETIME_META_KEYS
    markdown_extensions: tuple[str, ...] = DEFAULT_MARKDOWN_EXTENSIONS
    http_timeout: float = Field(default=30.0, gt=0)
    user_agent: str | None = None
    cache_remote_resources: bool = False

    @field_validator("metadata_patterns")
    @classmethod
    def _require_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        patterns = tuple(pattern.strip() for pattern in value if pattern.strip())
        if not patterns:
            raise ValueError("At least one metadata file pattern is required.")
        return patterns

    @property
    def meta_keys(self) -> tuple[str, ...]:
        """Return every metadata key that names a resource."""
        return self.runtime_meta_keys + self.compiletime_meta_keys

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> PreprocessConfig:
        """Build a configuration honouring ``DECKSMITH_*`` environment overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        timeout = env.get("DECKSMITH_HTTP_TIMEOUT")
        if timeout:
            values["http_timeout"] = float(timeout)

        user_agent = env.get("DECKSMITH_HTTP_USER_AGENT", "").strip()
        if user_agent:
            values["user_agent"] = user_agent

        cache_remote = env.get("DECKSMITH_CACHE_REMOTE")
        if cache_remote is not None:
            flag = cache_remote.strip().lower()
            if flag in _TRUTHY:
                values["cache_remote_resources"] = True
            elif flag in _FALSY:
                values["cache_remote_resources"] = False
            else:
                raise ValueError(
                    f"DECKSMITH_CACHE_REMOTE must be a boolean flag, got {cache_remote!r}."
                )

        values.update(overrides)
        return cls(**values)


__all__ = [
    "COMPILETIME_META_KEYS",
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "ELEMENT_ATTRIBUTES",
    "METADATA_PATTERNS",
    "RUNTIME_META_KEYS",
    "PreprocessConfig",
]
