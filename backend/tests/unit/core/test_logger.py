"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from imagehost.core.logger import JSONFormatter, configure_logging


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    configure_logging("DEBUG")
    try:
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("imagehost.test", logging.INFO, __file__, 1, "hello %s", ("you",), None)
    record.image_id = 9
    record.request_id = "rid-1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "hello you"
    assert payload["image_id"] == 9
    assert payload["request_id"] == "rid-1"
    assert payload["level"] == "INFO"
