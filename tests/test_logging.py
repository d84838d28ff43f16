"""Tests for JSON log formatting."""

from __future__ import annotations

import json
import logging
import sys

from raven_client.utils.logging import JsonFormatter, configure_logging


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("raven_client.test", logging.INFO, __file__, 1, "Reissuing %s", ("GET",), None)
    record.url = "http://db.test/docs/users/1"
    record.retries = 2

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Reissuing GET"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "raven_client.test"
    assert payload["url"] == "http://db.test/docs/users/1"
    assert payload["retries"] == 2
    assert "args" not in payload


def test_json_formatter_renders_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("raven_client.test").makeRecord(
            "raven_client.test", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
        )
    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_installs_json_handler() -> None:
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
