"""Lead management routes."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from api.routes.communications import CommunicationResponse
from api.routes.customers import CustomerResponse
from core.logging_config import get_logger
from core.models import LeadSource, LeadStatus
from domain.communications import CommunicationService
from domain.leads import LeadService
from domain.pipeline import build_pipeline

router = APIRouter()
LOGGER = get_logger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================


class LeadCreate(BaseModel):
    """Request body for lead creation."""

    model_config = ConfigDict(use_enum_values=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=1, max_length=30)
    source: LeadSource
    status: LeadStatus = Field(default=LeadStatus.NEW, validate_default=True)
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    requirements: Optional[str] = None
    assigned_to: Optional[int] = None
    project_interest: Optional[int] = None
    unit_interest: Optional[int] = None
    notes: Optional[str] = None


class LeadUpdate(BaseModel):
    """
    Partial lead update.

    Only the fields present in the request body are written. Required
    columns may be omitted but not set to null.
    """

    model_config = ConfigDict(use_enum_values=True)

    first_name: str = Field(default=None, min_length=1, max_length=100)
    last_name: str = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: str = Field(default=None, min_length=1, max_length=30)
    source: LeadSource = None
    status: LeadStatus = None
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    requirements: Optional[str] = None
    assigned_to: Optional[int] = None
    project_interest: Optional[int] = None
    unit_interest: Optional[int] = None
    notes: Optional[str] = None
    last_contacted_at: Optional[datetime] = None


class LeadConvert(BaseModel):
    """Extra customer details supplied at conversion time."""

    address: Optional[str] = None
    pan_number: Optional[str] = Field(None, max_length=20)
    aadhar_number: Optional[str] = Field(None, max_length=20)


class LeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    source: str
    status: Optional[str] = None
    budget: Optional[Decimal] = None
    requirements: Optional[str] = None
    assigned_to: Optional[int] = None
    project_interest: Optional[int] = None
    unit_interest: Optional[int] = None
    notes: Optional[str] = None
    last_contacted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PipelineStageResponse(BaseModel):
    status: str
    title: str
    count: int
    leads: List[LeadResponse]


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[LeadResponse], dependencies=[Depends(can_read)])
async def list_leads(
    status: Optional[LeadStatus] = Query(default=None, description="Filter by pipeline status"),
    assignee: Optional[int] = Query(default=None, description="Filter by assigned user id"),
    search: Optional[str] = Query(default=None, description="Match name, phone or email"),
    db: Session = Depends(get_readonly_db),
):
    """
    List leads, newest first.

    Only one filter applies: ``search`` wins over ``status``, which wins
    over ``assignee``. An empty ``search`` is ignored.
    """
    service = LeadService(db)
    if search:
        return service.search(search)
    if status is not None:
        return service.list_by_status(status.value)
    if assignee is not None:
        return service.list_by_assignee(assignee)
    return service.list_all()


@router.get("/pipeline", response_model=List[PipelineStageResponse], dependencies=[Depends(can_read)])
async def get_pipeline(
    preview: Optional[int] = Query(default=None, ge=0, le=500, description="Max leads per stage"),
    db: Session = Depends(get_readonly_db),
) -> List[Dict[str, Any]]:
    """Leads bucketed by pipeline stage, every stage present."""
    return build_pipeline(LeadService(db).list_all(), preview=preview)


@router.post(
    "",
    response_model=LeadResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_lead(body: LeadCreate, db: Session = Depends(get_db)):
    return LeadService(db).create(body.model_dump())


@router.get("/{lead_id}", response_model=LeadResponse, dependencies=[Depends(can_read)])
async def get_lead(lead_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(LeadService(db).get(lead_id), "Lead")


@router.patch("/{lead_id}", response_model=LeadResponse, dependencies=[Depends(can_write)])
async def update_lead(lead_id: int, body: LeadUpdate, db: Session = Depends(get_db)):
    lead = LeadService(db).update(lead_id, body.model_dump(exclude_unset=True))
    return found_or_404(lead, "Lead")


@router.post(
    "/{lead_id}/convert",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def convert_lead(
    lead_id: int,
    body: Optional[LeadConvert] = Body(default=None),
    db: Session = Depends(get_db),
):
    """Create a customer from the lead. 409 if it was already converted."""
    extra = body.model_dump(exclude_unset=True) if body is not None else None
    return LeadService(db).convert_to_customer(lead_id, extra)


@router.get(
    "/{lead_id}/communications",
    response_model=List[CommunicationResponse],
    dependencies=[Depends(can_read)],
)
async def list_lead_communications(lead_id: int, db: Session = Depends(get_readonly_db)):
    found_or_404(LeadService(db).get(lead_id), "Lead")
    return CommunicationService(db).list_by_lead(lead_id)
