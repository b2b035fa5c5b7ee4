"""Payment routes. Every write recomputes the booking's paid and balance amounts."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from core.models import PaymentStatus
from domain.bookings import PaymentService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class PaymentCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    booking_id: int
    customer_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    payment_method: str = Field(..., min_length=1, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, validate_default=True)
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    receipt_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    """Partial update. The booking a payment belongs to cannot change."""

    model_config = ConfigDict(use_enum_values=True)

    amount: Decimal = Field(default=None, gt=0, max_digits=15, decimal_places=2)
    payment_method: str = Field(default=None, min_length=1, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    status: PaymentStatus = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    receipt_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    customer_id: int
    amount: Decimal
    payment_method: str
    transaction_id: Optional[str] = None
    status: str
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[PaymentResponse], dependencies=[Depends(can_read)])
async def list_payments(db: Session = Depends(get_readonly_db)):
    return PaymentService(db).list_all()


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_payment(body: PaymentCreate, db: Session = Depends(get_db)):
    return PaymentService(db).create(body.model_dump())


@router.get("/{payment_id}", response_model=PaymentResponse, dependencies=[Depends(can_read)])
async def get_payment(payment_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(PaymentService(db).get(payment_id), "Payment")


@router.patch("/{payment_id}", response_model=PaymentResponse, dependencies=[Depends(can_write)])
async def update_payment(payment_id: int, body: PaymentUpdate, db: Session = Depends(get_db)):
    payment = PaymentService(db).update(payment_id, body.model_dump(exclude_unset=True))
    return found_or_404(payment, "Payment")
