"""Customer routes."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from api.routes.bookings import BookingResponse
from api.routes.payments import PaymentResponse
from domain.bookings import BookingService, PaymentService
from domain.customers import CustomerService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class CustomerCreate(BaseModel):
    lead_id: Optional[int] = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=1, max_length=30)
    address: Optional[str] = None
    pan_number: Optional[str] = Field(None, max_length=20)
    aadhar_number: Optional[str] = Field(None, max_length=20)
    assigned_to: Optional[int] = None


class CustomerUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    first_name: str = Field(default=None, min_length=1, max_length=100)
    last_name: str = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: str = Field(default=None, min_length=1, max_length=30)
    address: Optional[str] = None
    pan_number: Optional[str] = Field(None, max_length=20)
    aadhar_number: Optional[str] = Field(None, max_length=20)
    assigned_to: Optional[int] = None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lead_id: Optional[int] = None
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    address: Optional[str] = None
    pan_number: Optional[str] = None
    aadhar_number: Optional[str] = None
    assigned_to: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[CustomerResponse], dependencies=[Depends(can_read)])
async def list_customers(
    assignee: Optional[int] = Query(default=None, description="Filter by assigned user id"),
    db: Session = Depends(get_readonly_db),
):
    service = CustomerService(db)
    if assignee is not None:
        return service.list_by_assignee(assignee)
    return service.list_all()


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_customer(body: CustomerCreate, db: Session = Depends(get_db)):
    return CustomerService(db).create(body.model_dump())


@router.get("/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(can_read)])
async def get_customer(customer_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(CustomerService(db).get(customer_id), "Customer")


@router.patch("/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(can_write)])
async def update_customer(customer_id: int, body: CustomerUpdate, db: Session = Depends(get_db)):
    customer = CustomerService(db).update(customer_id, body.model_dump(exclude_unset=True))
    return found_or_404(customer, "Customer")


@router.get(
    "/{customer_id}/bookings",
    response_model=List[BookingResponse],
    dependencies=[Depends(can_read)],
)
async def list_customer_bookings(customer_id: int, db: Session = Depends(get_readonly_db)):
    found_or_404(CustomerService(db).get(customer_id), "Customer")
    return BookingService(db).list_by_customer(customer_id)


@router.get(
    "/{customer_id}/payments",
    response_model=List[PaymentResponse],
    dependencies=[Depends(can_read)],
)
async def list_customer_payments(customer_id: int, db: Session = Depends(get_readonly_db)):
    found_or_404(CustomerService(db).get(customer_id), "Customer")
    return PaymentService(db).list_by_customer(customer_id)
