"""HTTP helpers with cross-platform TLS guidance."""

from __future__ import annotations

from importlib import metadata as importlib_metadata
import os
from typing import Any

import requests

from .exceptions import RemoteFetchError, TLSCertificateError


def _tls_help(url: str) -> str:
    return (
        "TLS certificate verification failed while downloading "
        f"'{url}'. On macOS run the Python 'Install Certificates.command' "
        "(from the python.org installer). On Windows run 'py -m pip install --upgrade certifi'. "
        "On Linux install your 'ca-certificates' package (apt/yum/apk). "
        "Also check system date/time and any proxy or corporate SSL inspection."
    )


def default_user_agent() -> str:
    """Return the user agent announced to remote servers."""
    override = os.getenv("DECKSMITH_HTTP_USER_AGENT", "").strip()
    if override:
        return override
    try:
        version = importlib_metadata.version("decksmith")
    except importlib_metadata.PackageNotFoundError:
        version = "unknown"
    return f"decksmith/{version}"


def fetch_url(
    url: str,
    *,
    session: Any | None = None,
    timeout: float | None = None,
    user_agent: str | None = None,
) -> bytes:
    """Download ``url`` and return the body of a ``200 OK`` response.

    Any other status and every transport failure raise :class:`RemoteFetchError`.
    """
    client = session if session is not None else requests
    headers = {"User-Agent": user_agent or default_user_agent()}
    try:
        response = client.get(url, timeout=timeout, headers=headers)
    except requests.exceptions.SSLError as exc:
        raise TLSCertificateError(url, _tls_help(url)) from exc
    except requests.exceptions.RequestException as exc:
        raise RemoteFetchError(url, f"Cannot download {url}: {exc}") from exc

    status = getattr(response, "status_code", None)
    if status != 200:
        reason = getattr(response, "reason", None) or ""
        detail = f"{status} {reason}".strip()
        raise RemoteFetchError(url, f"Cannot download {url} ({detail})", status=status)
    return response.content


__all__ = ["default_user_agent", "fetch_url"]
