"""Logging setup for the registry: console, rotating ``autostart.log``, op context."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_FILE = "autostart.log"

#: Web-stack loggers that log every request; held at WARNING unless DEBUG.
_CHATTY_LOGGERS = ("uvicorn.access", "uvicorn.error", "nicegui", "watchfiles")


def setup_logging(
    log_level: str = "INFO",
    log_dir: str | None = "logs",
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Install console (and optionally file) handlers on the root logger.

    Calling again replaces the previous handlers.  An unrecognised
    *log_level* falls back to INFO.  ``log_dir=None`` keeps output on the
    console only; otherwise ``<log_dir>/autostart.log`` rotates at
    *max_bytes* keeping *backup_count* old files.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(log_dir, _LOG_FILE),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    chatty_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextualLogger:
    """Logger wrapper that prefixes ``[key=value]`` pairs to each message.

    Used by the mutation engine so every line of one Validate/Apply/Confirm
    run carries the operation name and target key::

        log = ContextualLogger(_log, op="toggle_app", key=path)
        log.bind(enabled=False).info("applied")
        # [op=toggle_app] [key=/x.desktop] [enabled=False] applied
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self._logger = logger
        self.context = dict(context)
        self._prefix = " ".join(f"[{k}={v}]" for k, v in self.context.items())

    def bind(self, **extra: Any) -> ContextualLogger:
        """Return a logger with *extra* appended to this one's context."""
        return ContextualLogger(self._logger, **{**self.context, **extra})

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._prefix:
            msg = f"{self._prefix} {msg}"
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)
