import json
import logging

from logging_config import JSONFormatter, RedactingFilter, build_handler, redact


def _record(msg, *args, **extra):
    record = logging.LogRecord("gitright.test", logging.INFO, __file__, 10, msg, args, None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


def test_redacts_credentials():
    assert redact("token gho_abcdefghijklmnop leaked") == "token [REDACTED] leaked"
    assert redact("key=AIzaSyA1234567890abcdefghijkl") == "key=[REDACTED]"
    assert redact("Authorization: Bearer abc.def-ghi") == "Authorization: Bearer [REDACTED]"
    assert redact("jwt eyJhbGciOi.eyJ1c2VyX2lkIjox.c2lnbmF0dXJl") == "jwt [REDACTED]"
    assert redact("nothing secret here") == "nothing secret here"


def test_filter_rewrites_formatted_message():
    record = _record("exchanged code for %s", "gho_abcdefghijklmnop")
    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "exchanged code for [REDACTED]"


def test_json_formatter_includes_request_fields():
    record = _record("GET /health 200", method="GET", path="/health", status_code=200, duration_ms=1.5)
    entry = json.loads(JSONFormatter().format(record))

    assert entry["severity"] == "INFO"
    assert entry["message"] == "GET /health 200"
    assert entry["logger"] == "gitright.test"
    assert entry["path"] == "/health"
    assert entry["status_code"] == 200
    assert entry["duration_ms"] == 1.5


def test_production_handler_emits_json():
    handler = build_handler("Production")
    assert isinstance(handler.formatter, JSONFormatter)
    assert any(isinstance(f, RedactingFilter) for f in handler.filters)

    assert not isinstance(build_handler("development").formatter, JSONFormatter)
