from __future__ import annotations

import logging

import pytest

from decksmith.core.diagnostics import (
    LoggingEmitter,
    NullEmitter,
    ensure_emitter,
    format_event_message,
    record_event,
)
from decksmith.core.exceptions import (
    RemoteFetchError,
    ResourceNotFoundError,
    exception_hint,
    exception_messages,
)


def _raise_missing_resource() -> None:
    raise ResourceNotFoundError("img/logo.png")


def _raise_nested_fetch_error() -> None:
    try:
        _raise_missing_resource()
    except ResourceNotFoundError as exc:
        raise RemoteFetchError("https://example.com", "download failed") from exc


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.DEBUG):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
        emitter.event("ignored", {"value": 1})
    assert not caplog.records
    assert emitter.debug_enabled is False


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(debug_enabled=True)
    with caplog.at_level(logging.WARNING):
        emitter.warning("careful")
        emitter.error("boom")
    messages = [record.message for record in caplog.records]
    assert messages == ["careful", "boom"]
    assert emitter.debug_enabled is True


def test_events_are_summarised(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter()
    with caplog.at_level(logging.INFO):
        record_event(emitter, "resource_provision", {"source": "/p/a.png", "mode": "Copy"})
    assert [record.message for record in caplog.records] == ["Provisioning: /p/a.png (Copy)"]


def test_unknown_events_are_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter()
    with caplog.at_level(logging.INFO):
        emitter.event("custom", {"flag": True})
    assert not caplog.records
    with caplog.at_level(logging.DEBUG):
        emitter.event("custom", {"flag": True})
    assert "custom" in caplog.records[-1].message


def test_format_event_message_variants() -> None:
    assert format_event_message("remote_fetch", {"url": "https://x"}) == "Fetching: https://x"
    assert format_event_message("include_expand", {"target": "a.md", "depth": 2}) == (
        "Including: a.md (depth 2)"
    )
    assert format_event_message("unknown", {}) is None


def test_ensure_emitter_defaults_to_logging() -> None:
    assert isinstance(ensure_emitter(None), LoggingEmitter)
    quiet = NullEmitter()
    assert ensure_emitter(quiet) is quiet


def test_exception_hint_prefers_root_cause() -> None:
    with pytest.raises(RemoteFetchError) as excinfo:
        _raise_nested_fetch_error()

    assert exception_messages(excinfo.value) == [
        "download failed",
        "Cannot find local resource: img/logo.png",
    ]
    assert exception_hint(excinfo.value) == "Cannot find local resource: img/logo.png"
