"""Communication log routes."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import get_db, get_readonly_db
from core.config import get_settings
from core.models import CommunicationStatus, CommunicationType
from domain.communications import CommunicationService

router = APIRouter()
SETTINGS = get_settings()


# =============================================================================
# Pydantic Models
# =============================================================================


class CommunicationCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    lead_id: int
    user_id: int
    type: CommunicationType
    subject: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0, description="Duration in minutes")
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: CommunicationStatus = Field(default=CommunicationStatus.COMPLETED, validate_default=True)


class CommunicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: int
    user_id: int
    type: str
    subject: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: str
    created_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("/recent", response_model=List[CommunicationResponse], dependencies=[Depends(can_read)])
async def recent_communications(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_readonly_db),
):
    """Most recent communications across all leads."""
    return CommunicationService(db).list_recent(limit or SETTINGS.recent_communications_limit)


@router.post(
    "",
    response_model=CommunicationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_communication(body: CommunicationCreate, db: Session = Depends(get_db)):
    return CommunicationService(db).create(body.model_dump())
