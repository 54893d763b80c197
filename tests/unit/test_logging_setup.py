"""Unit tests for logging_setup.py."""

import json
import logging
import sys
from pathlib import Path

import pytest

from logprobe.logging_setup import JsonLineFormatter, setup_logging


class TestSetupLogging:
    """Test handler configuration."""

    def test_console_handler_on_stderr(self):
        logger = setup_logging("INFO")

        assert logger.name == "logprobe"
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr
        assert handler.level == logging.INFO

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging("INFO")
        logger = setup_logging("DEBUG")
        assert len(logger.handlers) == 1

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("LOUD")

    def test_file_handler_writes_json_lines(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "probe.log"
        logger = setup_logging("ERROR", log_file)

        assert len(logger.handlers) == 2
        logging.getLogger("logprobe.scanner").debug("scanned", extra={"offset": 42})
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["message"] == "scanned"
        assert record["level"] == "DEBUG"
        assert record["logger"] == "logprobe.scanner"
        assert record["offset"] == 42

    def test_stdout_untouched(self, capsys):
        setup_logging("DEBUG")
        logging.getLogger("logprobe.probe").warning("diagnostic")
        captured = capsys.readouterr()
        assert captured.out == ""


class TestJsonLineFormatter:
    """Test JSON formatting of records."""

    def test_non_serializable_extra(self):
        record = logging.LogRecord("logprobe", logging.INFO, __file__, 1, "msg %s", ("x",), None)
        record.path = Path("/tmp/a.log")

        obj = json.loads(JsonLineFormatter().format(record))

        assert obj["message"] == "msg x"
        assert obj["path"] == "/tmp/a.log"
