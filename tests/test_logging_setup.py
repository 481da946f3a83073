"""Tests for logging configuration"""

import json
import logging

from globlist_packer.utils import configure_logging, get_logger
from globlist_packer.utils.logging_setup import TRACE_LEVEL, JsonFormatter


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("GLOBLIST_PACKER_LOG_LEVEL", "DEBUG")

    configure_logging(json_format=False)

    assert logging.getLogger().level == logging.DEBUG


def test_explicit_level_wins(monkeypatch):
    monkeypatch.setenv("GLOBLIST_PACKER_LOG_LEVEL", "DEBUG")

    configure_logging(log_level="ERROR", json_format=False)

    assert logging.getLogger().level == logging.ERROR


def test_trace_level():
    configure_logging(log_level="TRACE", json_format=False)

    assert logging.getLogger().level == TRACE_LEVEL
    assert hasattr(get_logger("globlist_packer.test"), "trace")


def test_json_formatter():
    record = logging.LogRecord("globlist_packer.test", logging.INFO, __file__, 1,
                               "hello", None, None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"


def test_log_file(tmp_path):
    log_file = tmp_path / "packer.log"

    configure_logging(log_level="INFO", log_file=str(log_file), json_format=False)
    get_logger("globlist_packer.test").info("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()


def test_json_formatter_includes_context():
    record = logging.LogRecord("globlist_packer.test", logging.INFO, __file__, 1,
                               "archived", None, None)
    record.extra = {"archive": "packed.tgz"}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["archive"] == "packed.tgz"
