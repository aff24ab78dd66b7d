"""Tests for log formatting helpers."""

import json
import logging

from purchase_guard.core.logging import JSONFormatter, mask_key


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("purchase_guard.test", logging.WARNING, __file__, 1, "call failed: %s", ("timeout",), None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


def test_json_formatter_includes_key_id():
    data = json.loads(JSONFormatter().format(_record(key_id="...abcd")))
    assert data["message"] == "call failed: timeout"
    assert data["level"] == "WARNING"
    assert data["key_id"] == "...abcd"


def test_json_formatter_without_key_id():
    data = json.loads(JSONFormatter().format(_record()))
    assert "key_id" not in data


def test_mask_key():
    assert mask_key("csk-secret-1234") == "...1234"
    assert mask_key("abcd") == "****"
