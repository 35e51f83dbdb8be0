"""Tests for the centralized logging utility."""

import logging
from io import StringIO

import pytest

from heatrank.utils.logger import Logger, LoggerNotConfiguredError, LogLevel, LogOnce


def test_logger_unconfigured():
    """Test that using Logger before configuration raises error."""
    Logger.reset()

    with pytest.raises(LoggerNotConfiguredError):
        Logger.get("test")


def test_logger_configuration():
    """Test logger configuration."""
    output = StringIO()
    Logger.configure(level="DEBUG", output=output, timestamps=False)

    assert Logger.is_configured()

    log = Logger.get("test_config")
    log.debug("Debug message")

    content = output.getvalue()
    assert "DEBUG" in content
    assert "[heatrank.test_config]" in content
    assert "Debug message" in content


def test_logger_set_level():
    """Test changing log level."""
    output = StringIO()
    Logger.configure(level="INFO", output=output, timestamps=False)

    log = Logger.get("test_level")
    log.debug("Hidden")
    assert "Hidden" not in output.getvalue()

    Logger.set_level("DEBUG")
    log.debug("Visible")
    assert "Visible" in output.getvalue()


def test_logger_file_output(tmp_path):
    """Logs can be appended to a file path."""
    log_file = tmp_path / "heatrank.log"
    Logger.configure(level="INFO", output=log_file, timestamps=False)

    Logger.get("file_test").info("Written to disk")
    for handler in logging.getLogger("heatrank").handlers:
        handler.flush()

    assert "Written to disk" in log_file.read_text(encoding="utf-8")


def test_logger_invalid_level():
    """Unknown level names are rejected with the valid choices."""
    with pytest.raises(ValueError, match="DEBUG, INFO"):
        Logger.configure(level="LOUD", output=StringIO())


def test_level_names_case_insensitive():
    """Level names from the environment may be lower case."""
    assert LogLevel.parse(" warning ") is LogLevel.WARNING
    assert LogLevel.parse(LogLevel.DEBUG).numeric == logging.DEBUG


class TestLogOnce:
    """Tests for once-per-key logging."""

    def test_logs_each_key_once(self, log_output):
        """Repeated keys are suppressed."""
        once = LogOnce(Logger.get("once"))

        assert once.warning("sysfs", "zones missing") is True
        assert once.warning("sysfs", "zones missing") is False
        assert log_output.getvalue().count("zones missing") == 1

    def test_keys_are_independent(self, log_output):
        """Different keys each log once."""
        once = LogOnce(Logger.get("once"))

        once.info("a", "first source")
        once.info("b", "second source")

        assert once.seen("a")
        assert once.seen("b")
        assert not once.seen("c")
        assert "first source" in log_output.getvalue()
        assert "second source" in log_output.getvalue()

    def test_instances_do_not_share_state(self):
        """A new instance (new session) logs again."""
        log = Logger.get("once")
        LogOnce(log).info("key", "message")

        assert LogOnce(log).info("key", "message") is True
