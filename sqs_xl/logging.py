from __future__ import annotations
import json
import os
import sys
import time
import traceback
from typing import Any, Dict, Optional

from .constants import ENV_LOG_LEVEL


class StructuredLogger:
    """Structured JSON logger used across the extended client and its adapters."""

    _level_order = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}

    def __init__(self, name: str = "sqs_xl", level: str = "INFO", bound: Optional[Dict[str, Any]] = None):
        self.name = name
        self.level = level.upper()
        self._bound: Dict[str, Any] = dict(bound or {})

    # ----------------------------------------------------------------------
    # Core logging method
    # ----------------------------------------------------------------------
    def _log(self, level: str, msg: str, extra: Optional[Dict[str, Any]] = None):
        """Format and print one JSON log line."""
        if self._level_order.get(level, 100) < self._level_order.get(self.level, 20):
            return

        try:
            record = {
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
                "level": level,
                "logger": self.name,
                "msg": str(msg),
            }

            fields = dict(self._bound)
            if extra and isinstance(extra, dict):
                fields.update(extra)
            for k, v in fields.items():
                # Core keys win
                if k not in record:
                    record[k] = v

            line = json.dumps(record, ensure_ascii=False, default=str)
            print(line, file=sys.stdout, flush=True)

        except Exception as e:
            # Never crash the caller due to logging errors
            print(f"[logger-error] failed to log: {e}", file=sys.stderr, flush=True)

    # ----------------------------------------------------------------------
    # Public convenience methods
    # ----------------------------------------------------------------------
    def info(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        self._log("INFO", msg, extra)

    def warning(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        self._log("WARNING", msg, extra)

    def error(self, msg: Any, extra: Optional[Dict[str, Any]] = None):
        if isinstance(msg, BaseException):
            err_str = f"{type(msg).__name__}: {msg}"
            tb = "".join(traceback.format_exception(type(msg), msg, msg.__traceback__))
            self._log("ERROR", err_str, dict(extra or {}, traceback=tb))
        else:
            self._log("ERROR", msg, extra)

    def debug(self, msg: str, extra: Optional[Dict[str, Any]] = None):
        self._log("DEBUG", msg, extra)

    # ----------------------------------------------------------------------
    # Context binding
    # ----------------------------------------------------------------------
    def bind(self, **context: Any) -> "StructuredLogger":
        """
        Return a copy of the logger with context permanently attached.
        Example:
            log = get_logger("send").bind(queue_url=url)
        """
        return StructuredLogger(name=self.name, level=self.level, bound={**self._bound, **context})

    def set_level(self, level: str) -> None:
        level = level.upper()
        if level not in self._level_order:
            raise ValueError(f"Unknown log level: {level}")
        self.level = level


# ----------------------------------------------------------------------
# Module-level logger registry (one logger per name)
# ----------------------------------------------------------------------

_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str = "sqs_xl", level: Optional[str] = None) -> StructuredLogger:
    """Get or create a logger; level defaults to $SQS_XL_LOG_LEVEL or INFO."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name=name, level=level or os.environ.get(ENV_LOG_LEVEL, "INFO"))
    elif level:
        _loggers[name].set_level(level)
    return _loggers[name]


__all__ = ["StructuredLogger", "get_logger"]
