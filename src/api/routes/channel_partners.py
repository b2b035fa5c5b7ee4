"""Channel partner routes."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from domain.partners import ChannelPartnerService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class ChannelPartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    address: Optional[str] = None
    commission_rate: Decimal = Field(Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    is_active: bool = True


class ChannelPartnerUpdate(BaseModel):
    """Partial update, including the manually maintained totals."""

    name: str = Field(default=None, min_length=1, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    email: EmailStr = None
    phone: str = Field(default=None, min_length=1, max_length=30)
    address: Optional[str] = None
    commission_rate: Decimal = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    total_leads: int = Field(default=None, ge=0)
    total_sales: Decimal = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    total_commission: Decimal = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    is_active: bool = None


class ChannelPartnerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    company_name: Optional[str] = None
    email: str
    phone: str
    address: Optional[str] = None
    commission_rate: Decimal
    total_leads: int
    total_sales: Decimal
    total_commission: Decimal
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[ChannelPartnerResponse], dependencies=[Depends(can_read)])
async def list_channel_partners(db: Session = Depends(get_readonly_db)):
    return ChannelPartnerService(db).list_all()


@router.post(
    "",
    response_model=ChannelPartnerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_channel_partner(body: ChannelPartnerCreate, db: Session = Depends(get_db)):
    return ChannelPartnerService(db).create(body.model_dump())


@router.get(
    "/{partner_id}",
    response_model=ChannelPartnerResponse,
    dependencies=[Depends(can_read)],
)
async def get_channel_partner(partner_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(ChannelPartnerService(db).get(partner_id), "Channel partner")


@router.patch(
    "/{partner_id}",
    response_model=ChannelPartnerResponse,
    dependencies=[Depends(can_write)],
)
async def update_channel_partner(
    partner_id: int,
    body: ChannelPartnerUpdate,
    db: Session = Depends(get_db),
):
    partner = ChannelPartnerService(db).update(partner_id, body.model_dump(exclude_unset=True))
    return found_or_404(partner, "Channel partner")
