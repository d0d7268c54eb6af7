"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from searchbridge.config.settings import ObservabilitySettings
from searchbridge.observability.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_json_output(self, capsys):
        setup_logging(ObservabilitySettings(log_level="info", log_format="json"))
        logging.getLogger("searchbridge.test").info("Deleted %d documents", 3)
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Deleted 3 documents"
        assert record["level"] == "info"
        assert record["logger"] == "searchbridge.test"

    def test_level_filtering(self, capsys):
        setup_logging(ObservabilitySettings(log_level="warning", log_format="json"))
        logging.getLogger("searchbridge.test").info("hidden")
        assert "hidden" not in capsys.readouterr().err

    def test_console_format(self, capsys):
        setup_logging(ObservabilitySettings(log_level="debug", log_format="console"))
        logging.getLogger("searchbridge.test").debug("visible")
        assert "visible" in capsys.readouterr().err

    def test_defaults(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO
