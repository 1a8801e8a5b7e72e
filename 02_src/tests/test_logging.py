"""Tests for structured logging."""

import json
import logging

from debt_tracker.logging_config import JSONFormatter, setup_logging


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_json_with_context(self):
        """Test that extra context fields end up in the record."""
        record = logging.LogRecord(
            name="debt_tracker.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Handling %s",
            args=("TextEvent",),
            exc_info=None,
        )
        record.chat_id = 42
        record.step = "idle"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Handling TextEvent"
        assert data["level"] == "INFO"
        assert data["chat_id"] == 42
        assert data["step"] == "idle"
        assert "exception" not in data


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_json_lines(self, tmp_path):
        """Test that log records are written to the file as JSON."""
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(log_level="DEBUG", log_file=str(log_file), console=False)

        logging.getLogger("debt_tracker.test").info("hello", extra={"chat_id": 7})
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["chat_id"] == 7
        assert logging.getLogger("aiosqlite").level == logging.WARNING

        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
