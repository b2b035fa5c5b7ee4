"""Authentication routes: login, current user, admin registration."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_admin, get_current_user
from api.deps import get_db
from api.routes.users import UserResponse
from core.auth import create_access_token
from core.config import get_settings
from core.logging_config import get_logger
from core.models import User, UserRole
from domain.users import UserService

router = APIRouter()
LOGGER = get_logger(__name__)
SETTINGS = get_settings()


# =============================================================================
# Request/Response Models
# =============================================================================


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Registration request body (admin only)."""

    model_config = ConfigDict(use_enum_values=True)

    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128, description="Password (min 8 chars)")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = Field(default=UserRole.SALES_EXECUTIVE, validate_default=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# =============================================================================
# Routes
# =============================================================================


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Authenticate with username and password and return an access token."""
    user = UserService(db).authenticate(body.username, body.password)
    if user is None:
        LOGGER.warning(f"Failed login attempt for: {body.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    LOGGER.info(f"User logged in: {user.username}")
    return {
        "access_token": create_access_token(user.id, user.username, user.role),
        "token_type": "bearer",
        "expires_in": SETTINGS.jwt_access_token_expire_minutes * 60,
        "user": UserResponse.model_validate(user),
    }


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(can_admin),
) -> User:
    """Create a staff account. Duplicate username or email yields 409."""
    user = UserService(db).create(body.model_dump())
    LOGGER.info(f"User {user.username} registered by {admin.username}")
    return user
