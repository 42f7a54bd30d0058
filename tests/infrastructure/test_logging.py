"""Tests for centralized logging."""

import json
import logging
import sys

from surrogate.infrastructure.logging import configure_logging, JSONFormatter


def make_record(**kwargs) -> logging.LogRecord:
    defaults = dict(
        name="surrogate.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )
    defaults.update(kwargs)
    return logging.LogRecord(**defaults)


class TestConfigureLogging:
    def test_default_level(self):
        configure_logging(level=logging.INFO)
        assert logging.getLogger("surrogate").level == logging.INFO

    def test_level_by_name(self):
        configure_logging(level="debug")
        assert logging.getLogger("surrogate").level == logging.DEBUG

    def test_unknown_level_name_falls_back_to_warning(self):
        configure_logging(level="CHATTY")
        assert logging.getLogger("surrogate").level == logging.WARNING

    def test_json_format(self):
        configure_logging(level=logging.INFO, json_format=True)
        logger = logging.getLogger("surrogate")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_human_format(self):
        configure_logging(level=logging.INFO, json_format=False)
        logger = logging.getLogger("surrogate")
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_replaces_handlers(self):
        configure_logging(level=logging.INFO)
        configure_logging(level=logging.DEBUG)
        assert len(logging.getLogger("surrogate").handlers) == 1


class TestJSONFormatter:
    def test_format_basic(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "surrogate.test"
        assert "timestamp" in data
        assert "resource_id" not in data

    def test_extra_fields(self):
        record = make_record()
        record.resource_id = "i-1"
        record.stage = "INSTANCE_RUNNING"
        data = json.loads(JSONFormatter().format(record))
        assert data["resource_id"] == "i-1"
        assert data["stage"] == "INSTANCE_RUNNING"

    def test_format_with_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = make_record(level=logging.ERROR, msg="error occurred", args=(), exc_info=exc_info)
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError" in data["exception"]


class TestSdkLoggers:
    def test_sdk_request_logging_stays_at_warning(self):
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger("oci").level == logging.WARNING

    def test_sdk_follows_stricter_level(self):
        configure_logging(level=logging.ERROR)
        assert logging.getLogger("oci").level == logging.ERROR
