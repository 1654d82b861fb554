"""Session logging to a file under the user state directory.

The terminal is in raw mode while the UI runs, so nothing is ever logged to
stderr. Without ``--log-level`` the package logger only has a ``NullHandler``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_state_dir

APP_NAME = "lazyjj"
LOG_FILENAME = "lazyjj.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class InvalidLogLevelError(ValueError):
    """Unknown ``--log-level`` name."""

    def __init__(self, name: str) -> None:
        self.name = name
        choices = ", ".join(sorted(LOG_LEVELS))
        super().__init__(f"invalid log level {name!r} (choose from {choices})")


def default_log_path() -> Path:
    return Path(user_state_dir(APP_NAME, appauthor=False)) / LOG_FILENAME


def parse_log_level(name: str) -> int:
    level = LOG_LEVELS.get(name.strip().lower())
    if level is None:
        raise InvalidLogLevelError(name)
    return level


def _reset_handlers(package_logger: logging.Logger) -> None:
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


def disable_logging() -> logging.Logger:
    package_logger = logging.getLogger(APP_NAME)
    _reset_handlers(package_logger)
    package_logger.addHandler(logging.NullHandler())
    package_logger.propagate = False
    return package_logger


def configure_logging(level_name: str | None, path: Path | None = None) -> Path | None:
    """Route the ``lazyjj`` logger to a fresh session file.

    Returns the log file path, or ``None`` when logging stays disabled.
    Raises ``InvalidLogLevelError`` for unknown level names, leaving logging
    disabled.
    """
    package_logger = disable_logging()
    if level_name is None:
        return None
    level = parse_log_level(level_name)

    log_path = path or default_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _reset_handlers(package_logger)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.info("logging at %s to %s", logging.getLevelName(level), log_path)
    return log_path


__all__ = [
    "InvalidLogLevelError",
    "LOG_LEVELS",
    "configure_logging",
    "default_log_path",
    "disable_logging",
    "parse_log_level",
]
