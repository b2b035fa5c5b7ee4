"""User directory routes. Reads for everyone signed in, edits for admins."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_admin, can_read
from api.deps import found_or_404, get_db, get_readonly_db
from core.models import UserRole
from domain.users import UserService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class UserResponse(BaseModel):
    """Public user information. The password hash is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(BaseModel):
    """
    Partial account update.

    Deactivating a user blocks their next login and any token they still
    hold. A new password is hashed before storage.
    """

    model_config = ConfigDict(use_enum_values=True)

    email: EmailStr = None
    first_name: str = Field(default=None, min_length=1, max_length=100)
    last_name: str = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = None
    is_active: bool = None
    password: str = Field(default=None, min_length=8, max_length=128)


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[UserResponse], dependencies=[Depends(can_read)])
async def list_users(db: Session = Depends(get_readonly_db)):
    """List all users ordered by first name."""
    return UserService(db).list_all()


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(can_read)])
async def get_user(user_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(UserService(db).get(user_id), "User")


@router.patch("/{user_id}", response_model=UserResponse, dependencies=[Depends(can_admin)])
async def update_user(user_id: int, body: UserUpdate, db: Session = Depends(get_db)):
    user = UserService(db).update(user_id, body.model_dump(exclude_unset=True))
    return found_or_404(user, "User")
