"""Scoped loggers whose debug output is selected by the DEBUG variable."""

from __future__ import annotations

import logging
import os
import sys
import threading
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Any

DEFAULT_LEVEL = logging.DEBUG
ROOT_LOGGER_NAME = "mediasoup"

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_LEVEL_TAGS = {
    logging.DEBUG: ("DBG", "\x1b[33m"),
    logging.INFO: ("INF", "\x1b[32m"),
    logging.WARNING: ("WRN", "\x1b[31m"),
    logging.ERROR: ("ERR", "\x1b[1m\x1b[31m"),
    logging.CRITICAL: ("FTL", "\x1b[1m\x1b[31m"),
}
_RESET = "\x1b[0m"

_setup_lock = threading.Lock()
_handler_installed = False


def _parse_bool(text: str) -> bool | None:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return None


class _ConsoleFormatter(logging.Formatter):
    """Writes ``<time> <LVL> <scope> > <message>`` lines."""

    def __init__(self, hide_date: bool, colors: bool) -> None:
        super().__init__()
        self.hide_date = hide_date
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        tag, color = _LEVEL_TAGS.get(record.levelno, (record.levelname[:3], ""))
        if self.colors and color:
            tag = f"{color}{tag}{_RESET}"
        scope = getattr(record, "scope", "")
        parts = []
        if not self.hide_date:
            parts.append(datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds"))
        parts.append(tag)
        if scope:
            parts.append(f"{scope} >")
        parts.append(record.getMessage())
        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _install_handler() -> None:
    global _handler_installed
    with _setup_lock:
        if _handler_installed:
            return
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(DEFAULT_LEVEL)
        hide_date = _parse_bool(os.environ.get("DEBUG_HIDE_DATE", "")) is True
        colors = _parse_bool(os.environ.get("DEBUG_COLORS", ""))
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_ConsoleFormatter(hide_date=hide_date, colors=colors is not False))
        root.addHandler(handler)
        _handler_installed = True


def debug_enabled(scope: str, spec: str | None) -> bool:
    """Whether debug output of ``scope`` is on for a DEBUG value ``spec``.

    ``spec`` is a comma separated list of glob patterns; a leading ``-``
    excludes. The last matching pattern decides. An empty spec enables all.
    """
    if not spec:
        return True
    enabled = False
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        include = True
        if part.startswith("-"):
            include = False
            part = part[1:]
        if fnmatchcase(scope, part):
            enabled = include
    return enabled


class ScopedLogger:
    """A logger bound to a scope; debug messages can be switched off."""

    def __init__(self, scope: str, debug: bool = True) -> None:
        self.scope = scope
        self.debug_on = debug
        name = f"{ROOT_LOGGER_NAME}.{scope}" if scope else ROOT_LOGGER_NAME
        self._logger = logging.getLogger(name)
        self._extra = {"scope": scope}

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, *args: Any) -> None:
        if self.debug_on:
            self._logger.debug(message, *args, extra=self._extra)

    def info(self, message: str, *args: Any) -> None:
        self._logger.info(message, *args, extra=self._extra)

    def warn(self, message: str, *args: Any) -> None:
        self._logger.warning(message, *args, extra=self._extra)

    def error(self, message: str, *args: Any) -> None:
        self._logger.error(message, *args, extra=self._extra)


def new_logger(scope: str) -> ScopedLogger:
    """Create a logger for ``scope``, honouring the DEBUG environment variable."""
    _install_handler()
    return ScopedLogger(scope, debug=debug_enabled(scope, os.environ.get("DEBUG")))