"""Shared FastAPI dependencies and route helpers."""
from __future__ import annotations

from typing import Generator, Optional, TypeVar

from sqlalchemy.orm import Session

from core.db import SessionLocal
from core.exceptions import NotFoundError

T = TypeVar("T")


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a request-scoped database session.

    Commits when the route returns and rolls back on any exception, so a
    failed request leaves no partial writes behind.

    Yields:
        SQLAlchemy Session instance.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_readonly_db() -> Generator[Session, None, None]:
    """Session for read-only routes; always rolled back."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


def found_or_404(instance: Optional[T], entity: str) -> T:
    """Turn a service getter's None into a 404."""
    if instance is None:
        raise NotFoundError(entity)
    return instance


__all__ = ["get_db", "get_readonly_db", "found_or_404"]
