"""Unit tests for structured logging framework.

Tests cover:
- get_logger returns a structlog logger rendering JSON
- Sanitization redacts consent strings and credentials
- Context binding
"""

import json
import logging

import pytest
import structlog

from just_id.utils.logging import (
    bind_context,
    get_logger,
    sanitize_for_logging,
)


def _records_for(caplog: pytest.LogCaptureFixture, name: str) -> list:
    return [json.loads(r.message) for r in caplog.records if r.name == name]


@pytest.mark.unit
def test_get_logger_name_preserved(caplog: pytest.LogCaptureFixture) -> None:
    """Logger name appears in the JSON output."""
    caplog.set_level(logging.INFO)

    get_logger("justid_test_logger").info("test_event")

    (log_data,) = _records_for(caplog, "justid_test_logger")
    assert log_data["logger"] == "justid_test_logger"
    assert log_data["event"] == "test_event"
    assert log_data["level"] == "info"
    assert "T" in log_data["timestamp"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "key",
    ["consentString", "consent_string", "tcString", "tc_string", "access_token", "password"],
)
def test_sanitize_for_logging_redacts(key: str) -> None:
    sanitized = sanitize_for_logging({key: "sensitive", "mode": "ATM"})

    assert sanitized[key] == "[REDACTED]"
    assert sanitized["mode"] == "ATM"


@pytest.mark.unit
def test_sanitize_for_logging_keeps_similar_keys() -> None:
    """Only exact tc_string keys are redacted, not anything containing "tc"."""
    data = {"tcf_version": 2, "partner_id": "abc", "stored_at_ms": 1}

    assert sanitize_for_logging(data) == data


@pytest.mark.unit
def test_sanitize_for_logging_handles_nested_dicts() -> None:
    data = {
        "mode": "EXTERNAL",
        "consent": {"consentString": "CO123", "gdprApplies": True},
    }
    sanitized = sanitize_for_logging(data)

    assert sanitized["consent"]["consentString"] == "[REDACTED]"
    assert sanitized["consent"]["gdprApplies"] is True


@pytest.mark.unit
def test_sanitization_in_logged_output(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    get_logger("justid_sanitize_logger").info(
        "remote_provider.request", tc_string="CO-abc", partner_id="abc"
    )

    (log_data,) = _records_for(caplog, "justid_sanitize_logger")
    assert log_data["tc_string"] == "[REDACTED]"
    assert log_data["partner_id"] == "abc"


@pytest.mark.unit
def test_context_binding_persists(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    logger = get_logger("justid_bound_logger").bind(mode="INTERNAL", partner_id="abc")
    logger.info("first_event")
    logger.warning("second_event", attempt=2)

    records = _records_for(caplog, "justid_bound_logger")
    assert [r["event"] for r in records] == ["first_event", "second_event"]
    for log_data in records:
        assert log_data["mode"] == "INTERNAL"
        assert log_data["partner_id"] == "abc"
    assert records[1]["attempt"] == 2
    assert records[1]["level"] == "warning"


@pytest.mark.unit
def test_bind_context_convenience_function() -> None:
    logger = bind_context(mode="EXTERNAL")

    assert isinstance(logger, structlog.stdlib.BoundLogger)
