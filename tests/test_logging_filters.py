"""Tests for redaction and formatting of log records."""

from __future__ import annotations

import json
import logging
from io import StringIO

from quota_gate.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identity,
    set_request_id,
)


def _capture_logger(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_raw_identity_is_redacted():
    logger, stream = _capture_logger("test_identity_redaction")

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "identity": "198.51.100.7",
            "client_ip": "198.51.100.7",
            "policy_key": "/api/limited",
        },
    )

    output = stream.getvalue()
    assert "198.51.100.7" not in output
    assert "[REDACTED]" in output
    assert "/api/limited" in output


def test_hashed_identity_passes_through():
    logger, stream = _capture_logger("test_identity_hash")
    identity_hash = hash_identity("198.51.100.7")

    logger.info("rate_limit.allowed", extra={"identity_hash": identity_hash, "limit": 5})

    record = json.loads(stream.getvalue())
    assert record["identity_hash"] == identity_hash
    assert record["limit"] == 5
    assert record["message"] == "rate_limit.allowed"
    assert record["level"] == "info"


def test_hash_identity_is_stable_and_short():
    assert hash_identity("10.0.0.1") == hash_identity("10.0.0.1")
    assert hash_identity("10.0.0.1") != hash_identity("10.0.0.2")
    assert len(hash_identity("10.0.0.1")) == 16


def test_nested_sensitive_fields_are_redacted():
    logger, stream = _capture_logger("test_nested")

    logger.info(
        "request_seen",
        extra={
            "headers": {"authorization": "Bearer secret-token", "user-agent": "pytest"},
        },
    )

    output = stream.getvalue()
    assert "secret-token" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context():
    logger, stream = _capture_logger("test_request_id")

    set_request_id("req-123")
    try:
        logger.info("policy.registered", extra={"policy_key": "/a"})
    finally:
        clear_request_id()

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-123"
