from __future__ import annotations

import json
import logging

import pytest

from upload_service.logging_config import (
    GCPJsonFormatter,
    RequestIdFilter,
    set_request_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_request_id("-")


def _record(msg: str = "hello", level: int = logging.WARNING) -> logging.LogRecord:
    return logging.LogRecord("upload_service.test", level, __file__, 10, msg, None, None)


class TestRequestIdFilter:
    def test_attaches_current_request_id(self):
        set_request_id("req-1")
        record = _record()
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "req-1"


class TestGCPJsonFormatter:
    def test_severity_replaces_levelname(self):
        fmt = GCPJsonFormatter(fmt="%(message)s %(levelname)s %(name)s", rename_fields={"name": "logger"})
        out = json.loads(fmt.format(_record()))
        assert out["severity"] == "WARNING"
        assert "levelname" not in out
        assert out["logger"] == "upload_service.test"
        assert out["message"] == "hello"


class TestSetupLogging:
    def test_json_handler(self):
        setup_logging(level="debug", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, GCPJsonFormatter)
        assert any(isinstance(f, RequestIdFilter) for f in root.handlers[0].filters)

    def test_plain_handler(self):
        setup_logging(level="INFO", json_output=False)
        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, GCPJsonFormatter)
        assert "request_id" in handler.formatter._fmt
