"""
Tests for logging setup.
"""

import pytest

from storydigest.config import LoggingConfig
from storydigest.utils.logger import get_logger, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging()


class TestResolveLevel:
    def test_configured_level(self):
        assert resolve_level(LoggingConfig(level="warning")) == "WARNING"

    def test_debug_flag_wins(self):
        assert resolve_level(LoggingConfig(level="WARNING"), debug=True) == "DEBUG"

    def test_debug_config(self):
        assert resolve_level(LoggingConfig(debug=True)) == "DEBUG"


class TestSetupLogging:
    def test_console_only_by_default(self):
        assert setup_logging() is None

    def test_file_sink_creates_directory(self, tmp_path):
        """Test the JSON file sink writes under the configured directory."""
        log_dir = tmp_path / "logs"

        path = setup_logging(LoggingConfig(log_to_file=True, log_dir=str(log_dir)))
        get_logger("tests.logger").info("session created")
        setup_logging()

        assert path == log_dir
        files = list(log_dir.glob("storydigest_*.log"))
        assert len(files) == 1
        assert '"module": "tests.logger"' in files[0].read_text()
