"""Custom exceptions for the realty sales CRM."""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class RealtyCRMError(Exception):
    """Base exception for all application errors."""

    pass


# =============================================================================
# Request / Domain Errors
# =============================================================================


class ValidationError(RealtyCRMError):
    """
    Raised when submitted data fails validation.

    Carries one entry per offending field so the caller can report all of
    them at once.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str, error_type: str = "value_error") -> "ValidationError":
        return cls(
            "Invalid request data",
            errors=[{"field": field, "message": message, "type": error_type}],
        )


class NotFoundError(RealtyCRMError):
    """Raised when an id does not resolve to a row."""

    def __init__(self, entity: str, entity_id: Any = None) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(RealtyCRMError):
    """Raised on duplicate keys or illegal state transitions."""

    pass


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(RealtyCRMError):
    """Base exception for database-related errors."""

    pass


class AggregationError(DatabaseError):
    """Raised when any query behind the dashboard metrics fails."""

    pass


__all__ = [
    "RealtyCRMError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DatabaseError",
    "AggregationError",
]
