"""Tests for the JSON log formatter."""

import json
import logging
import sys

from commercerec.api.logging_config import JSONFormatter


def make_record(msg="Recommendations generated", extra=None, exc_info=None):
    record = logging.LogRecord(
        "commercerec.recommender.engine", logging.INFO, __file__, 10, msg, None, exc_info
    )
    for key, value in (extra or {}).items():
        setattr(record, key, value)
    return record


def test_formatter_emits_one_json_line_with_extra_fields():
    """Test that extra fields land in a single JSON line."""
    record = make_record(extra={"user_id": 7, "source": "popular"})

    line = JSONFormatter().format(record)

    assert "\n" not in line
    data = json.loads(line)
    assert data["message"] == "Recommendations generated"
    assert data["level"] == "INFO"
    assert data["logger"] == "commercerec.recommender.engine"
    assert data["user_id"] == 7
    assert data["source"] == "popular"
    assert "args" not in data
    assert "exception" not in data


def test_formatter_includes_exception_and_stringifies_unknown_types():
    """Test exception text and fallback string conversion."""
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = make_record(extra={"item_ids": {3}}, exc_info=sys.exc_info())

    data = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: boom" in data["exception"]
    assert data["item_ids"] == "{3}"
