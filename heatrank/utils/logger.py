"""Process-wide logging for heatrank.

Every module logs through a child of the ``heatrank`` logger. The CLI
configures it once at startup; library code only ever calls ``Logger.get``.

Usage:
    from heatrank.utils.logger import Logger, LogOnce

    Logger.configure(level="WARNING", output="stderr")

    log = Logger.get("core.temperature")
    log.info("Reading thermal zones")

    # Per-session de-duplication of recurring messages
    once = LogOnce(log)
    once.warning("sysfs_thermal", "No thermal zones found")
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import TextIO

ROOT_LOGGER_NAME = "heatrank"


class LogLevel(Enum):
    """Log levels accepted by ``Logger.configure``."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def parse(cls, level: "str | LogLevel") -> "LogLevel":
        """Accept a LogLevel or a case-insensitive level name.

        Raises:
            ValueError: If the name is not a known level.
        """
        if isinstance(level, LogLevel):
            return level
        try:
            return cls(level.strip().upper())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown log level {level!r}; use one of {valid}") from None

    @property
    def numeric(self) -> int:
        """Matching ``logging`` module constant."""
        value: int = getattr(logging, self.value)
        return value


class LoggerNotConfiguredError(Exception):
    """Raised when trying to use Logger before calling Logger.configure()."""

    def __init__(self) -> None:
        super().__init__(
            "Logger not configured. Call Logger.configure() at application startup."
        )


def _make_handler(output: str | Path | TextIO | None) -> logging.Handler:
    if output is None:
        return logging.StreamHandler(sys.stdout)
    if output == "stderr":
        return logging.StreamHandler(sys.stderr)
    if isinstance(output, str | Path):
        return logging.FileHandler(str(output), encoding="utf-8")
    if hasattr(output, "write"):
        return logging.StreamHandler(output)
    raise ValueError(f"Invalid output: {type(output)}")


def _default_format(timestamps: bool, include_location: bool) -> str:
    fields = ["%(levelname)s", "[%(name)s]"]
    if timestamps:
        fields.insert(0, "%(asctime)s")
    if include_location:
        fields.append("[%(filename)s:%(lineno)d]")
    fields.append("%(message)s")
    return " ".join(fields)


class Logger:
    """Class-level facade over the ``heatrank`` logger hierarchy.

    Must be configured before use; ``get`` raises LoggerNotConfiguredError
    otherwise, so a missing ``configure`` call fails loudly instead of
    silently dropping messages.

    Example:
        >>> Logger.configure(level="INFO", output="heatrank.log")
        >>> Logger.get("backends.process").info("Falling back to CPU time")
    """

    _configured: bool = False

    @classmethod
    def configure(
        cls,
        level: str | LogLevel = "INFO",
        output: str | Path | TextIO | None = None,
        timestamps: bool = True,
        include_location: bool = False,
        format_string: str | None = None,
    ) -> None:
        """Configure (or reconfigure) the root heatrank logger.

        Args:
            level: Level name or LogLevel.
            output: None for stdout, "stderr", a file path (appended to),
                or any object with ``write``.
            timestamps: Prefix records with the time.
            include_location: Add [filename:lineno].
            format_string: Custom format; overrides the two flags above.
        """
        numeric = LogLevel.parse(level).numeric
        root = logging.getLogger(ROOT_LOGGER_NAME)

        for old in list(root.handlers):
            root.removeHandler(old)
            old.close()

        handler = _make_handler(output)
        handler.setLevel(numeric)
        handler.setFormatter(
            logging.Formatter(
                format_string or _default_format(timestamps, include_location)
            )
        )

        root.setLevel(numeric)
        root.addHandler(handler)
        root.propagate = False
        cls._configured = True

    @classmethod
    def get(cls, name: str | None = None) -> logging.Logger:
        """Return ``heatrank.<name>``, or the root heatrank logger.

        Raises:
            LoggerNotConfiguredError: If configure() hasn't been called.
        """
        if not cls._configured:
            raise LoggerNotConfiguredError()
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME)

    @classmethod
    def set_level(cls, level: str | LogLevel) -> None:
        """Change the level of the logger and its handlers in place.

        Raises:
            LoggerNotConfiguredError: If configure() hasn't been called.
        """
        root = cls.get()
        numeric = LogLevel.parse(level).numeric
        root.setLevel(numeric)
        for handler in root.handlers:
            handler.setLevel(numeric)

    @classmethod
    def is_configured(cls) -> bool:
        """Check if logger has been configured."""
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Remove handlers and return to the unconfigured state."""
        root = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        cls._configured = False


class LogOnce:
    """Emit each keyed message at most once for the lifetime of the instance.

    A monitoring session owns one of these so a sensor that is missing on
    every cycle produces a single log line instead of one per cycle.

    Example:
        >>> once = LogOnce(Logger.get("core.temperature"))
        >>> once.warning("sysfs_thermal", "Thermal zones unavailable")
        True
        >>> once.warning("sysfs_thermal", "Thermal zones unavailable")
        False
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._seen: set[str] = set()

    def log(self, key: str, level: int, message: str) -> bool:
        """Log ``message`` unless ``key`` was already logged.

        Returns:
            True if the message was emitted.
        """
        if key in self._seen:
            return False
        self._seen.add(key)
        self._logger.log(level, message)
        return True

    def info(self, key: str, message: str) -> bool:
        """Log once at INFO."""
        return self.log(key, logging.INFO, message)

    def warning(self, key: str, message: str) -> bool:
        """Log once at WARNING."""
        return self.log(key, logging.WARNING, message)

    def seen(self, key: str) -> bool:
        """Return True if ``key`` has already been logged."""
        return key in self._seen
