"""Shared fixtures for probe tests."""

import logging
from pathlib import Path

import pytest

from logprobe.config import ProbeConfig
from logprobe.position_store import PositionStore


@pytest.fixture
def temp_log_file(tmp_path: Path) -> Path:
    """Create temporary log file with one error line."""
    log_file = tmp_path / "app.log"
    log_file.write_text("foo\nbar error\nbaz\n")
    return log_file


@pytest.fixture
def empty_log_file(tmp_path: Path) -> Path:
    """Create empty log file."""
    log_file = tmp_path / "empty.log"
    log_file.write_text("")
    return log_file


@pytest.fixture
def seek_file(tmp_path: Path) -> Path:
    """Path of a position file that does not exist yet."""
    return tmp_path / "app.seek"


@pytest.fixture
def position_store(seek_file: Path) -> PositionStore:
    """Create PositionStore backed by a temporary file."""
    return PositionStore(seek_file)


@pytest.fixture
def probe_config(temp_log_file: Path, seek_file: Path) -> ProbeConfig:
    """Configuration matching ``error`` in the temporary log."""
    return ProbeConfig(logfile=str(temp_log_file), seekfile=str(seek_file), pattern="error")


@pytest.fixture(autouse=True)
def reset_probe_logger():
    """Undo handler changes made by setup_logging so caplog keeps working."""
    yield
    probe_logger = logging.getLogger("logprobe")
    for handler in probe_logger.handlers:
        handler.close()
    probe_logger.handlers.clear()
    probe_logger.propagate = True
    probe_logger.setLevel(logging.NOTSET)
