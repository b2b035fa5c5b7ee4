"""Unit inventory routes."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from core.models import UnitStatus
from domain.projects import ProjectService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class UnitCreate(BaseModel):
    """New unit. ``project_id`` defaults to the tower's project."""

    model_config = ConfigDict(use_enum_values=True)

    tower_id: int
    project_id: Optional[int] = None
    unit_number: str = Field(..., min_length=1, max_length=50)
    floor: int = Field(..., ge=0)
    type: str = Field(..., min_length=1, max_length=50, description="e.g. 1BHK, 2BHK")
    area: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    price: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)


class UnitStatusUpdate(BaseModel):
    status: UnitStatus


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tower_id: int
    project_id: int
    unit_number: str
    floor: int
    type: str
    area: Decimal
    price: Decimal
    status: str
    created_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[UnitResponse], dependencies=[Depends(can_read)])
async def list_units(
    status: Optional[UnitStatus] = Query(default=None, description="Filter by unit status"),
    db: Session = Depends(get_readonly_db),
):
    return ProjectService(db).list_units(status=status.value if status else None)


@router.post(
    "",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_unit(body: UnitCreate, db: Session = Depends(get_db)):
    return ProjectService(db).create_unit(body.model_dump())


@router.get("/{unit_id}", response_model=UnitResponse, dependencies=[Depends(can_read)])
async def get_unit(unit_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(ProjectService(db).get_unit(unit_id), "Unit")


@router.patch("/{unit_id}/status", response_model=UnitResponse, dependencies=[Depends(can_write)])
async def update_unit_status(unit_id: int, body: UnitStatusUpdate, db: Session = Depends(get_db)):
    """Move a unit through its status table; illegal moves return 409."""
    return ProjectService(db).update_unit_status(unit_id, body.status.value)
