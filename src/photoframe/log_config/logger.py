"""Logging setup, contextual logger, and rotating file handler."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any


_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("urllib3", "httpx", "watchfiles", "multipart")


def setup_logging(
    log_level: str = "INFO",
    log_dir: str = "logs",
    log_file: str = "photoframe.log",
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Configure the root logger with console + rotating-file handlers.

    Calling it again replaces the handlers installed by a previous call,
    so the level can be changed after the config file has been read.

    Args:
        log_level: One of DEBUG / INFO / WARNING / ERROR / CRITICAL.
        log_dir: Directory for log files (created if absent).
        log_file: File name inside *log_dir*.
        max_bytes: Max size per log file before rotation.
        backup_count: Number of rotated backup files to keep.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    os.makedirs(log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


class ContextualLogger:
    """Prefixes every message with ``[key=value]`` context.

    Usage::

        log = ContextualLogger(logging.getLogger(__name__), engine="timer")
        log.info("Started")  # => "[engine=timer] Started"
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self._logger = logger
        self._prefix = " ".join(f"[{k}={v}]" for k, v in context.items())

    def _emit(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._prefix:
            msg = f"{self._prefix} {msg}"
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, msg, *args, **kwargs)
