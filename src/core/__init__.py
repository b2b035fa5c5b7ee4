"""Core module exports."""
from __future__ import annotations

from core.config import Settings, get_settings, reload_settings
from core.db import Base, SessionLocal, get_session, init_db
from core.exceptions import (
    AggregationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    RealtyCRMError,
    ValidationError,
)
from core.logging_config import JSONFormatter, get_logger, setup_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reload_settings",
    # Database
    "Base",
    "SessionLocal",
    "get_session",
    "init_db",
    # Exceptions
    "RealtyCRMError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DatabaseError",
    "AggregationError",
    # Logging
    "setup_logging",
    "get_logger",
    "JSONFormatter",
]
