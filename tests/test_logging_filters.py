"""Tests for sensitive data filtering and JSON formatting in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest
from fastapi.testclient import TestClient

from quota_api.adapters.quota.base import QuotaConfig
from quota_api.adapters.quota.in_memory import InMemoryUsageStore
from quota_api.core.app_factory import create_app
from quota_api.core.config import AppSettings, LogSettings
from quota_api.core.identity import hash_identity
from quota_api.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    configure_logging,
    set_request_id,
)
from quota_api.services.quota_tracker import QuotaTracker


@pytest.fixture
def capture_logger() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_client_addresses_are_redacted(capture_logger) -> None:
    logger, stream = capture_logger

    logger.info(
        "quota.event",
        extra={
            "ip": "203.0.113.7",
            "client_ip": "198.51.100.4",
            "identity": "192.0.2.1",
            "identity_hash": "abc123",
        },
    )

    output = stream.getvalue()
    assert "203.0.113.7" not in output
    assert "198.51.100.4" not in output
    assert "192.0.2.1" not in output
    assert "[REDACTED]" in output
    assert "abc123" in output


def test_credentials_and_nested_headers_are_redacted(capture_logger) -> None:
    logger, stream = capture_logger

    logger.info(
        "request.headers",
        extra={
            "headers": {
                "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
                "cookie": "hf_token=hf_secret",
                "user-agent": "pytest",
            },
            "hf_token": "hf_secret",
        },
    )

    output = stream.getvalue()
    assert "203.0.113.7" not in output
    assert "hf_secret" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture_logger) -> None:
    logger, stream = capture_logger

    logger.info(
        "quota.allowed",
        extra={"used": 3, "limit": 10, "remaining": 7, "route": "/v1/usage"},
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "quota.allowed"
    assert record["level"] == "info"
    assert record["used"] == 3
    assert record["route"] == "/v1/usage"
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context_is_included(capture_logger) -> None:
    logger, stream = capture_logger
    set_request_id("req-123")
    try:
        logger.info("quota.recorded")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_configure_logging_to_file(tmp_path) -> None:
    log_file = tmp_path / "logs" / "quota.log"
    configure_logging(LogSettings(output="file", file_path=str(log_file), level="INFO"))
    try:
        logging.getLogger("quota_api.test").info("quota.file_event", extra={"ip": "203.0.113.7"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        contents = log_file.read_text(encoding="utf-8")
        assert "quota.file_event" in contents
        assert "203.0.113.7" not in contents
    finally:
        configure_logging(LogSettings(level="WARNING"))


@pytest.fixture
def quota_log_stream():
    """Capture JSON lines from the application's own quota loggers."""
    logger = logging.getLogger("quota_api")
    previous_level = logger.level

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield stream
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


def test_metered_requests_log_quota_events_without_client_address(quota_log_stream) -> None:
    app = create_app(AppSettings(quota_daily_limit=2, quota_sweep_enabled=False))
    client = TestClient(app)
    headers = {"X-Forwarded-For": "203.0.113.7", "X-Request-ID": "req-quota-1"}

    statuses = [client.post("/v1/usage", headers=headers).status_code for _ in range(3)]

    records = [json.loads(line) for line in quota_log_stream.getvalue().splitlines()]
    quota_records = [r for r in records if r["message"].startswith("quota.")]
    assert statuses == [200, 200, 429]
    assert [r["message"] for r in quota_records] == [
        "quota.recorded",
        "quota.allowed",
        "quota.limit_reached",
        "quota.allowed",
        "quota.exceeded",
    ]
    exceeded = quota_records[-1]
    assert exceeded["level"] == "warning"
    assert exceeded["retry_after_s"] > 0
    assert exceeded["request_id"] == "req-quota-1"
    assert {r["identity_hash"] for r in quota_records} == {hash_identity("203.0.113.7")}
    assert "203.0.113.7" not in quota_log_stream.getvalue()


def test_over_limit_record_is_logged_as_warning(quota_log_stream) -> None:
    tracker = QuotaTracker(InMemoryUsageStore(), QuotaConfig(daily_limit=1))

    tracker.record_usage("198.51.100.4")
    tracker.record_usage("198.51.100.4")

    records = [json.loads(line) for line in quota_log_stream.getvalue().splitlines()]
    assert [(r["message"], r["level"]) for r in records] == [
        ("quota.limit_reached", "info"),
        ("quota.recorded_over_limit", "warning"),
    ]
    assert records[-1]["used"] == 2
    assert records[-1]["remaining"] == 0
    assert "198.51.100.4" not in quota_log_stream.getvalue()
