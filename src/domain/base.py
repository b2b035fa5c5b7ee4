"""Helpers shared by the domain services."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from core.db import Base
from core.exceptions import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


def get_or_raise(session: Session, model: Type[ModelT], entity_id: Any, entity: str) -> ModelT:
    """Load a row by primary key or raise NotFoundError."""
    instance = session.get(model, entity_id)
    if instance is None:
        raise NotFoundError(entity, entity_id)
    return instance


def check_reference(
    session: Session,
    model: Type[ModelT],
    entity_id: Optional[Any],
    entity: str,
) -> Optional[ModelT]:
    """Resolve an optional foreign key; None passes through."""
    if entity_id is None:
        return None
    return get_or_raise(session, model, entity_id, entity)


def apply_changes(instance: Base, changes: Mapping[str, Any]) -> None:
    """Write only the supplied fields onto an ORM instance."""
    for field_name, value in changes.items():
        setattr(instance, field_name, value)
