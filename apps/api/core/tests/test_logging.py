"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog

from apps.api.core.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestStructuredLogging:
    """Test structlog outputs structured JSON."""

    def test_setup_logging_configures_structlog(self):
        """After setup, structlog.get_logger() should return a bound logger."""
        setup_logging(log_level="DEBUG", json_output=True)
        logger = structlog.get_logger()
        assert logger is not None
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_dev_mode(self):
        """Dev mode should configure console renderer without errors."""
        setup_logging(log_level="WARNING", json_output=False)
        assert logging.getLogger().level == logging.WARNING

    def test_engine_records_render_as_json(self, capsys):
        """Standard-library records from the engine share the JSON format."""
        setup_logging(log_level="INFO", json_output=True)
        logging.getLogger("packages.statement_engine.dedupe").info("Dedupe removed 2 duplicates")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Dedupe removed 2 duplicates"
        assert record["level"] == "info"
        assert record["logger"] == "packages.statement_engine.dedupe"

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(log_level="chatty", json_output=True)
        assert logging.getLogger().level == logging.INFO
