# tests/unit/logging/test_logger.py — v3
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging

from fscache.logging.context import operation_context
from fscache.logging.logger import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record("Hello")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        with operation_context("write", "/tmp/cache/k1", "/tmp/cache"):
            parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"] == {
            "cache_root": "/tmp/cache",
            "entry_path": "/tmp/cache/k1",
            "operation": "write",
        }

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = _record("failed", logging.ERROR)
            record.exc_info = sys.exc_info()
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        with operation_context("delete", "k9"):
            output = TextFormatter().format(_record("removed"))
        assert "[delete]" in output
        assert "(k9)" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("fscache")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("fscache")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_setup_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "fscache.log"
        setup_logging(level="INFO", log_file=log_file)
        root = logging.getLogger("fscache")
        assert len(root.handlers) == 2
        assert log_file.parent.is_dir()
        setup_logging(level="INFO")
        assert len(root.handlers) == 1
