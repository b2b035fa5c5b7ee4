"""
Logging setup for the CRM.

Modules log through ``get_logger(__name__)`` and pass structured context as
``extra={"extra_data": {...}}``. The JSON formatter lifts the record ids a
sales log is usually searched by (lead, unit, booking, payment, user, path)
to top-level keys; everything else stays under ``context``.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from core.utils import utcnow

TEXT_LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s%(context)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONTEXT_KEYS: Tuple[str, ...] = (
    "path",
    "user_id",
    "lead_id",
    "project_id",
    "unit_id",
    "booking_id",
    "payment_id",
)

QUIET_LOGGERS: Tuple[str, ...] = (
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "uvicorn.access",
    "passlib",
)


def split_context(extra_data: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split ``extra_data`` into (record ids, remaining context)."""
    ids: Dict[str, Any] = {}
    rest: Dict[str, Any] = {}
    for key, value in (extra_data or {}).items():
        if key in CONTEXT_KEYS:
            ids[key] = value
        else:
            rest[key] = value
    return ids, rest


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ids, rest = split_context(getattr(record, "extra_data", None))
        entry.update(ids)
        if rest:
            entry["context"] = rest

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
            entry["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with ``key=value`` context appended."""

    def __init__(self) -> None:
        super().__init__(TEXT_LOG_FORMAT, DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        extra_data = getattr(record, "extra_data", None) or {}
        record.context = (
            " " + " ".join(f"{key}={value}" for key, value in extra_data.items())
            if extra_data
            else ""
        )
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name.
        log_file: Also write to this file when given.
        json_format: Emit JSON lines instead of text.
    """
    formatter: logging.Formatter = JSONFormatter() if json_format else TextFormatter()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "CONTEXT_KEYS",
    "JSONFormatter",
    "TextFormatter",
    "get_logger",
    "setup_logging",
    "split_context",
]
