"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from advent_auth.core.logger import JSONFormatter, RequestIdFilter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("advent_auth.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    configure_logging("DEBUG")
    try:
        assert logging.getLogger().level == logging.DEBUG
    finally:
        configure_logging("INFO")


def test_json_formatter_renders_message_and_extras() -> None:
    payload = json.loads(JSONFormatter().format(_record(subject_id=3, provider="NAVER")))

    assert payload["message"] == "hello x"
    assert payload["level"] == "INFO"
    assert payload["subject_id"] == 3
    assert payload["provider"] == "NAVER"
    assert "endpoint" not in payload


def test_request_id_filter_outside_request() -> None:
    record = _record()
    assert RequestIdFilter().filter(record) is True
    assert record.request_id is None


def test_request_id_is_echoed_on_responses(client) -> None:
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_each_request_gets_its_own_request_id(client) -> None:
    first = client.get("/api/v1/health", headers={"X-Request-ID": "req-a"})
    second = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-b"})
    third = client.get("/api/v1/health")

    assert first.headers["X-Request-ID"] == "req-a"
    assert second.headers["X-Request-ID"] == "req-b"
    assert third.headers["X-Request-ID"] not in {"req-a", "req-b"}


def test_request_id_is_generated_when_absent(client) -> None:
    resp = client.get("/api/v1/health")
    assert resp.headers["X-Request-ID"]


def test_formatter_falls_back_to_principal_id() -> None:
    payload = json.loads(JSONFormatter().format(_record(principal_id=8)))
    assert payload["subject_id"] == 8


def test_explicit_subject_id_wins_over_principal() -> None:
    payload = json.loads(JSONFormatter().format(_record(principal_id=8, subject_id=9)))
    assert payload["subject_id"] == 9
