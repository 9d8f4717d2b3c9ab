"""Opt-in logging setup for liftlab.

The library installs only a ``NullHandler`` on the ``liftlab`` logger, so it
prints nothing until one of the helpers below attaches a real handler.

Usage::

    import liftlab

    liftlab.enable_console_logging("DEBUG")           # per-tick detail on stderr
    liftlab.enable_file_logging("logs/liftlab.log")   # size-rotated file
    liftlab.enable_json_logging()                     # one JSON object per line
    liftlab.set_module_level("algorithms", "WARNING") # quiet the dispatcher
    liftlab.configure_from_env()

Environment variables read by ``configure_from_env``:
    LL_LOGGING: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    LL_LOG_FILE: Log to this rotating file instead of stderr
    LL_LOG_JSON: "1" switches to JSON lines
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "JsonFormatter",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]

LOGGER_NAME = "liftlab"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

ENV_LEVEL = "LL_LOGGING"
ENV_FILE = "LL_LOG_FILE"
ENV_JSON = "LL_LOG_JSON"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp`` (UTC ISO-8601), ``level``, ``logger``, ``thread``,
    ``message`` and, when present, ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _library_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, level: str | int, formatter: logging.Formatter) -> None:
    """Install ``handler`` on the library logger at ``level``."""
    resolved = _resolve_level(level)
    handler.setLevel(resolved)
    handler.setFormatter(formatter)

    logger = _library_logger()
    logger.setLevel(resolved)
    logger.addHandler(handler)


def _prepare_path(path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log liftlab records to stderr.

    Returns:
        The installed handler, so callers can remove it later.
    """
    handler = logging.StreamHandler()
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log to a size-rotated file.

    Args:
        path: Log file. Missing parent directories are created.
        level: Minimum level.
        max_bytes: Size at which the file rolls over.
        backup_count: Rolled-over files to keep.
        format: Record format string.
        date_format: ``%(asctime)s`` format.
    """
    handler = RotatingFileHandler(_prepare_path(path), maxBytes=max_bytes, backupCount=backup_count)
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_timed_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    when: str = "midnight",
    interval: int = 1,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> TimedRotatingFileHandler:
    """Log to a file that rolls over on a schedule.

    ``when`` and ``interval`` take the values ``TimedRotatingFileHandler``
    accepts, e.g. ``when="H", interval=6`` for every six hours.
    """
    handler = TimedRotatingFileHandler(
        _prepare_path(path), when=when, interval=interval, backupCount=backup_count
    )
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Log JSON lines to stderr."""
    handler = logging.StreamHandler()
    _attach(handler, level, JsonFormatter())
    return handler


def enable_json_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """Log JSON lines to a size-rotated file."""
    handler = RotatingFileHandler(_prepare_path(path), maxBytes=max_bytes, backupCount=backup_count)
    _attach(handler, level, JsonFormatter())
    return handler


def configure_from_env() -> logging.Handler | None:
    """Install a handler described by ``LL_LOGGING``/``LL_LOG_FILE``/``LL_LOG_JSON``.

    Does nothing when neither a level nor a file is set.

    Returns:
        The installed handler, or None.
    """
    level = os.environ.get(ENV_LEVEL, "").strip().upper()
    log_file = os.environ.get(ENV_FILE, "").strip()
    as_json = os.environ.get(ENV_JSON, "").strip() == "1"

    if not level and not log_file:
        return None
    level = level or "INFO"

    if as_json:
        return enable_json_file_logging(log_file, level) if log_file else enable_json_logging(level)
    return enable_file_logging(log_file, level) if log_file else enable_console_logging(level)


def set_level(level: LogLevel | int) -> None:
    _library_logger().setLevel(_resolve_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Override the level of one subpackage, e.g. ``"core.elevator"``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_resolve_level(level))


def disable_logging() -> None:
    """Remove every real handler and silence the library logger."""
    logger = _library_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
