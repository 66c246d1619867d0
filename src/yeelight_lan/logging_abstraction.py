"""Structured logging for yeelight-lan.

Every module logs through ``get_logger(__name__)``. Records carry the current
correlation ID and any ``extra=`` mapping, rendered either as one JSON object
per line or as a single human-readable line.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import override

from yeelight_lan.correlation import get_correlation_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "YeelightLogger",
    "get_logger",
    "set_global_level",
]

_loggers: dict[str, YeelightLogger] = {}


def _context(record: logging.LogRecord) -> dict[str, object]:
    extra_data = getattr(record, "extra_data", None)
    return dict(extra_data) if isinstance(extra_data, Mapping) else {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record: level, origin, message, correlation ID and context."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        if context := _context(record):
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text with a short correlation tag and ``key=value`` context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_tag)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_tag = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"
        line = super().format(record)
        if context := _context(record):
            line += " | " + " | ".join(f"{key}={value}" for key, value in context.items())
        return line


def _open_handler(target: str) -> logging.Handler:
    """Stream handler for ``stdout``/``stderr``, file handler for anything else.

    A file that cannot be opened falls back to stderr.
    """
    if target == "stdout":
        return logging.StreamHandler(sys.stdout)
    if target == "stderr":
        return logging.StreamHandler(sys.stderr)
    path = Path(target).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError:
        return logging.StreamHandler(sys.stderr)


class YeelightLogger:
    """Thin wrapper over ``logging.Logger`` that accepts structured context.

    ``extra=`` mappings are stored on the record as ``extra_data`` for the
    formatters to render.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str = "stderr",
    ) -> None:
        from yeelight_lan.const import YEELIGHT_DEBUG

        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if YEELIGHT_DEBUG else logging.INFO)
        if self.logger.handlers:
            return

        outputs: list[tuple[str, logging.Formatter]] = []
        if log_format in ("json", "both") and json_file:
            outputs.append((str(json_file), JSONFormatter()))
        if log_format in ("human", "both"):
            outputs.append((human_output, HumanReadableFormatter()))
        for target, formatter in outputs:
            handler = _open_handler(target)
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self.logger.log(level, msg, *args, extra={"extra_data": dict(extra)} if extra else None)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


def get_logger(name: str, human_output: str | None = None) -> YeelightLogger:
    """Return the cached YeelightLogger for ``name``, creating it on first use.

    Output settings default to ``YEELIGHT_LOG_FORMAT``, ``YEELIGHT_LOG_JSON_FILE``
    and ``YEELIGHT_LOG_HUMAN_OUTPUT``; they only apply when the logger is created.
    """
    if name in _loggers:
        return _loggers[name]

    from yeelight_lan.const import YEELIGHT_LOG_FORMAT, YEELIGHT_LOG_HUMAN_OUTPUT, YEELIGHT_LOG_JSON_FILE

    logger = YeelightLogger(
        name,
        log_format=YEELIGHT_LOG_FORMAT,
        json_file=YEELIGHT_LOG_JSON_FILE,
        human_output=human_output or YEELIGHT_LOG_HUMAN_OUTPUT,
    )
    _loggers[name] = logger
    return logger


def set_global_level(level: int) -> None:
    """Apply a log level to every logger created through get_logger()."""
    for logger in _loggers.values():
        logger.set_level(level)
