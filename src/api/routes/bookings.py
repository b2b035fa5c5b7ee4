"""Booking routes."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from api.routes.payments import PaymentResponse
from core.models import BookingStatus
from domain.bookings import BookingService, PaymentService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class BookingCreate(BaseModel):
    """
    New booking. Paid and balance amounts are derived from payments and
    cannot be supplied.
    """

    model_config = ConfigDict(use_enum_values=True)

    customer_id: int
    unit_id: int
    project_id: Optional[int] = None
    total_amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    booking_date: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    assigned_to: Optional[int] = None


class BookingUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    total_amount: Decimal = Field(default=None, gt=0, max_digits=15, decimal_places=2)
    expected_completion_date: Optional[datetime] = None
    status: BookingStatus = None
    assigned_to: Optional[int] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    unit_id: int
    project_id: int
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    booking_date: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    status: str
    assigned_to: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[BookingResponse], dependencies=[Depends(can_read)])
async def list_bookings(db: Session = Depends(get_readonly_db)):
    return BookingService(db).list_all()


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    """Book a unit. The unit is reserved; 409 when it is not bookable."""
    return BookingService(db).create(body.model_dump())


@router.get("/{booking_id}", response_model=BookingResponse, dependencies=[Depends(can_read)])
async def get_booking(booking_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(BookingService(db).get(booking_id), "Booking")


@router.patch("/{booking_id}", response_model=BookingResponse, dependencies=[Depends(can_write)])
async def update_booking(booking_id: int, body: BookingUpdate, db: Session = Depends(get_db)):
    booking = BookingService(db).update(booking_id, body.model_dump(exclude_unset=True))
    return found_or_404(booking, "Booking")


@router.get(
    "/{booking_id}/payments",
    response_model=List[PaymentResponse],
    dependencies=[Depends(can_read)],
)
async def list_booking_payments(booking_id: int, db: Session = Depends(get_readonly_db)):
    found_or_404(BookingService(db).get(booking_id), "Booking")
    return PaymentService(db).list_by_booking(booking_id)
