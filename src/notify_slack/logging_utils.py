"""Diagnostic logging for notify_slack.

stdout carries the echoed input, so nothing here ever writes to it: the
console handler is bound to stderr and the optional file handler writes
``notify_slack.log`` under ``--log-dir``.
"""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, TextIO

LOGGER_NAME = "notify_slack"
LOG_FILE_NAME = "notify_slack.log"
CONSOLE_FORMAT = "notify_slack: %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"


class ColorFormatter(logging.Formatter):
    """Prefix the level name with an ANSI colour when the target is a terminal."""

    COLORS = {
        "DEBUG": "\033[2m",
        "INFO": "\033[36m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, *, stream: TextIO, use_color: bool) -> None:
        super().__init__(fmt)
        isatty = getattr(stream, "isatty", None)
        self.use_color = use_color and callable(isatty) and isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelname) if self.use_color else None
        if not color:
            return message
        return f"{color}{message}{self.RESET}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(config: Mapping[str, object], *, stream: TextIO | None = None) -> logging.Logger:
    """(Re)configure the ``notify_slack`` logger from CLI-style settings.

    Recognised keys: ``console_level`` (default WARNING), ``color`` (default
    on, only honoured on a terminal), ``log_dir``, ``file_level`` (default
    DEBUG) and ``json_logs`` (file handler writes JSON lines).
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(
        _console_handler(
            stream if stream is not None else sys.stderr,
            level=_coerce_level(config.get("console_level"), default=logging.WARNING),
            use_color=bool(config.get("color", True)),
        )
    )

    log_dir = config.get("log_dir")
    if log_dir:
        logger.addHandler(
            _file_handler(
                Path(str(log_dir)),
                level=_coerce_level(config.get("file_level"), default=logging.DEBUG),
                json_logs=bool(config.get("json_logs")),
            )
        )
    return logger


def _console_handler(stream: TextIO, *, level: int, use_color: bool) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ColorFormatter(CONSOLE_FORMAT, stream=stream, use_color=use_color))
    return handler


def _file_handler(directory: Path, *, level: int, json_logs: bool) -> logging.Handler:
    directory.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        directory / LOG_FILE_NAME,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter() if json_logs else logging.Formatter(FILE_FORMAT))
    return handler


def _coerce_level(level: object, *, default: int) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if isinstance(value, int):
            return value
    return default


__all__ = ["LOGGER_NAME", "LOG_FILE_NAME", "ColorFormatter", "JsonFormatter", "configure_logging"]
