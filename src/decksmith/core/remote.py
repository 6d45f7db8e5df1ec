"""Content-addressed cache for remote http(s) resources."""

from __future__ import annotations

import hashlib
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlparse

from .diagnostics import DiagnosticEmitter, ensure_emitter, record_event
from .exceptions import RemoteFetchError, exception_hint
from .http import fetch_url
from .project import make_relative_to
from .utils import atomic_write_bytes


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .documents import Document


__all__ = [
    "RemoteCache",
    "cache_remote_file",
    "cache_remote_images",
    "hash_uri",
    "is_cacheable_uri",
    "is_local_uri",
]

_CACHEABLE_SCHEMES = {"http", "https"}


def is_local_uri(url: str) -> bool:
    """Return whether ``url`` is a plain path rather than a URI with a scheme."""
    try:
        scheme = urlparse(url).scheme
    except ValueError:
        return False
    # Single letters are Windows drive prefixes, not schemes.
    return not scheme or len(scheme) == 1


def is_cacheable_uri(url: str) -> bool:
    """Return whether ``url`` points at an http(s) resource the cache handles."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in _CACHEABLE_SCHEMES and bool(parsed.netloc)


def hash_uri(url: str) -> str:
    """Return the cache file name for ``url``: its MD5 digest plus the URL extension."""
    digest = hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest()
    suffix = PurePosixPath(unquote(urlparse(url).path)).suffix
    return f"{digest}{suffix}"


class RemoteCache:
    """Mirror remote resources into ``cache_dir``, keyed by a hash of their URL.

    Entries are never revalidated: once a file exists for a URL it is returned
    as-is for the lifetime of the cache directory. Download failures are only
    reported as warnings and leave the URL untouched.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        *,
        session: Any | None = None,
        timeout: float | None = 30.0,
        user_agent: str | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self._session = session
        self._timeout = timeout
        self._user_agent = user_agent
        self._emitter = ensure_emitter(emitter)

    def path_for(self, url: str) -> Path:
        """Return the cache location reserved for ``url``."""
        return self.cache_dir / hash_uri(url)

    def fetch(self, url: str) -> str:
        """Return the cached file path for ``url``, downloading it on a miss.

        Non-cacheable URLs and failed downloads return ``url`` unchanged.
        """
        if not is_cacheable_uri(url):
            return url

        target = self.path_for(url)
        if target.is_file():
            record_event(self._emitter, "remote_fetch_cached", {"url": url})
            return str(target)

        record_event(self._emitter, "remote_fetch", {"url": url})
        try:
            payload = fetch_url(
                url,
                session=self._session,
                timeout=self._timeout,
                user_agent=self._user_agent,
            )
        except RemoteFetchError as exc:
            self._emitter.warning(f"Cannot cache {url}: {exception_hint(exc) or exc}", exc)
            return url

        atomic_write_bytes(target, payload)
        return str(target)


def cache_remote_file(
    cache_dir: str | Path,
    url: str,
    *,
    session: Any | None = None,
    timeout: float | None = 30.0,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Fetch ``url`` through a one-off :class:`RemoteCache` rooted at ``cache_dir``."""
    cache = RemoteCache(cache_dir, session=session, timeout=timeout, emitter=emitter)
    return cache.fetch(url)


def cache_remote_images(document: Document, cache: RemoteCache, *, output_dir: Path) -> Document:
    """Point remote ``<img>`` sources of ``document`` at their cached copies.

    Cached paths are expressed relative to ``output_dir``, the directory the
    rendered document is written to.
    """
    for element in document.iter_elements():
        if element.name != "img":
            continue
        source = element.get("src")
        if not isinstance(source, str) or not is_cacheable_uri(source):
            continue
        cached = cache.fetch(source)
        if cached != source:
            element["src"] = make_relative_to(output_dir, cached)
    return document
