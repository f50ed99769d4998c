"""Structured Logging — request and patch context on every expense tracker log line.

Invariants:
    - Every record carries timestamp, level, logger name and message
    - Domain extras (expense_group_id, page, operation_index, ...) are emitted
      only when set, in both the JSON and the text format
    - setup_logging can run more than once (tests, reloads) without stacking handlers

Design Decisions:
    - stdlib logging with a custom formatter; no logging dependency
    - SQLAlchemy engine and uvicorn access logs stay at WARNING unless level is DEBUG
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "error_code", "path", "method", "expense_group_id",
    "page", "page_size", "total_count", "operation_index",
)
_NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")
_HANDLER_NAME = "expense_tracker"


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key] for key in _EXTRA_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line with the domain extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if not extras:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in extras.items())


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the expense tracker handler on the root logger, replacing any earlier one."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)
    quiet_level = logging.DEBUG if root_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
    return handler
