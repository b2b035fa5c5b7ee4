"""Tests for the log formatters."""
from __future__ import annotations

import json
import logging

from core.logging_config import JSONFormatter, TextFormatter, split_context


def _record(message: str, extra_data=None) -> logging.LogRecord:
    record = logging.LogRecord("domain.bookings", logging.INFO, __file__, 10, message, (), None)
    if extra_data is not None:
        record.extra_data = extra_data
    return record


def test_split_context():
    ids, rest = split_context({"booking_id": 4, "unit_id": 9, "total": "100.00"})
    assert ids == {"booking_id": 4, "unit_id": 9}
    assert rest == {"total": "100.00"}
    assert split_context(None) == ({}, {})


def test_json_lifts_record_ids():
    line = JSONFormatter().format(
        _record("Booking created", {"booking_id": 4, "unit_id": 9, "total": "100.00"})
    )
    entry = json.loads(line)

    assert entry["message"] == "Booking created"
    assert entry["level"] == "INFO"
    assert entry["booking_id"] == 4
    assert entry["unit_id"] == 9
    assert entry["context"] == {"total": "100.00"}
    assert "exception" not in entry


def test_json_without_context():
    entry = json.loads(JSONFormatter().format(_record("Database validation passed")))
    assert "context" not in entry
    assert "lead_id" not in entry


def test_text_appends_key_values():
    line = TextFormatter().format(_record("Payment recorded", {"payment_id": 3, "status": "completed"}))
    assert line.endswith("Payment recorded payment_id=3 status=completed")
    assert "[domain.bookings]" in line
