"""User domain service."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.auth import hash_password, verify_password
from core.exceptions import ConflictError
from core.logging_config import get_logger
from core.models import User
from domain.base import apply_changes

LOGGER = get_logger(__name__)


class UserService:
    """Service for staff accounts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _ensure_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
        conditions = []
        if username is not None:
            conditions.append(User.username == username)
        if email is not None:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = self.session.query(User).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        existing = query.first()
        if existing is None:
            return
        if username is not None and existing.username == username:
            raise ConflictError("Username already exists")
        raise ConflictError("Email already registered")

    def create(self, data: Dict[str, Any]) -> User:
        """Create a user; ``data['password']`` is hashed before storage."""
        payload = dict(data)
        password = payload.pop("password")
        self._ensure_unique(payload.get("username"), payload.get("email"))

        user = User(hashed_password=hash_password(password), **payload)
        self.session.add(user)
        self.session.flush()
        self.session.refresh(user)

        LOGGER.info(f"User created: {user.username} ({user.role})")
        return user

    def get(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter(User.username == username).first()

    def list_all(self) -> List[User]:
        return self.session.query(User).order_by(User.first_name.asc(), User.id.asc()).all()

    def update(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        user = self.get(user_id)
        if user is None:
            return None

        payload = dict(changes)
        self._ensure_unique(payload.get("username"), payload.get("email"), exclude_id=user_id)
        if "password" in payload:
            user.hashed_password = hash_password(payload.pop("password"))
        apply_changes(user, payload)
        self.session.flush()
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, else None."""
        user = self.get_by_username(username)
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user
