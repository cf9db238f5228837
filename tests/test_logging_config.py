"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
import sys

from api.observability import new_request_id, request_log_fields
from core.logging_config import SERVICE_NAME, JSONFormatter, reset_request_id, set_request_id, setup_logging


def _record(msg="hello %s", args=("world",), level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="test", level=level, pathname="test.py", lineno=1, msg=msg, args=args, exc_info=exc_info
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_outputs_valid_json():
    parsed = json.loads(JSONFormatter().format(_record()))
    assert parsed["message"] == "hello world"
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test"
    assert parsed["service"] == SERVICE_NAME
    assert parsed["env"] == "dev"
    assert "timestamp" in parsed
    assert "context" not in parsed


def test_json_formatter_includes_exception():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    parsed = json.loads(JSONFormatter().format(_record("fail", (), logging.ERROR, exc_info)))
    assert parsed["exception"]["type"] == "ValueError"
    assert parsed["exception"]["message"] == "test error"


def test_json_formatter_collects_ctx_extras():
    record = _record(ctx_athlete_id=7, ctx_day="2026-03-20", unrelated="skip")
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["context"] == {"ctx_athlete_id": 7, "ctx_day": "2026-03-20"}


def test_json_formatter_includes_request_id():
    token = set_request_id("req-123")
    try:
        parsed = json.loads(JSONFormatter().format(_record()))
    finally:
        reset_request_id(token)
    assert parsed["request_id"] == "req-123"
    assert "request_id" not in json.loads(JSONFormatter().format(_record()))


def test_json_formatter_tags_environment():
    parsed = json.loads(JSONFormatter("production").format(_record()))
    assert parsed["env"] == "production"


def test_setup_logging_idempotent():
    root = logging.getLogger()
    initial_count = len(root.handlers)
    setup_logging()
    setup_logging()
    assert len(root.handlers) <= initial_count + 1


def test_request_log_fields():
    fields = request_log_fields(method="GET", path="/api/v1/health", status_code=200, duration_ms=1.2345, client_ip=None)
    assert fields == {
        "ctx_method": "GET",
        "ctx_path": "/api/v1/health",
        "ctx_status_code": 200,
        "ctx_duration_ms": 1.23,
        "ctx_client_ip": "",
    }
    assert len(new_request_id()) == 32
