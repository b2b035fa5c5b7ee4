"""Authentication and permission dependencies for FastAPI routes."""
from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from api.deps import get_db
from core.auth import decode_access_token
from core.logging_config import get_logger
from core.models import User
from domain.permissions import Capability, has_capability

LOGGER = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate the bearer token and return the current user.

    Raises 401 if the token is missing, invalid, or the user is gone or inactive.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return user


def require_capability(capability: Capability) -> Callable[..., User]:
    """
    Dependency factory: resolve the current user and check their role.

    Usage:
        @router.post("", dependencies=[Depends(require_capability(Capability.WRITE))])
    """

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user.role, capability):
            LOGGER.warning(
                "Permission denied",
                extra={"extra_data": {
                    "user_id": current_user.id,
                    "role": current_user.role,
                    "capability": capability.value,
                }},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"'{capability.value}' permission required",
            )
        return current_user

    return checker


can_read = require_capability(Capability.READ)
can_write = require_capability(Capability.WRITE)
can_admin = require_capability(Capability.ADMIN)
