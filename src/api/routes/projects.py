"""Project and tower routes."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from api.auth_deps import can_read, can_write
from api.deps import found_or_404, get_db, get_readonly_db
from api.routes.units import UnitResponse
from domain.projects import ProjectService

router = APIRouter()


# =============================================================================
# Pydantic Models
# =============================================================================


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: str = Field(..., min_length=1, max_length=255)
    total_units: int = Field(..., ge=0)
    available_units: Optional[int] = Field(None, ge=0, description="Defaults to total_units")
    starting_price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    ending_price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    image_url: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def default_available_units(self) -> "ProjectCreate":
        if self.available_units is None:
            self.available_units = self.total_units
        return self


class ProjectUpdate(BaseModel):
    """Partial update. Unit counters are maintained by unit status changes."""

    name: str = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: str = Field(default=None, min_length=1, max_length=255)
    total_units: int = Field(default=None, ge=0)
    starting_price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    ending_price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    image_url: Optional[str] = None
    is_active: bool = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    location: str
    total_units: int
    available_units: int
    sold_units: int
    starting_price: Optional[Decimal] = None
    ending_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TowerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    total_floors: int = Field(..., ge=1)
    units_per_floor: int = Field(..., ge=1)
    total_units: Optional[int] = Field(None, ge=0, description="Defaults to floors x units per floor")


class TowerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    name: str
    total_floors: int
    units_per_floor: int
    total_units: int
    created_at: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.get("", response_model=List[ProjectResponse], dependencies=[Depends(can_read)])
async def list_projects(db: Session = Depends(get_readonly_db)):
    return ProjectService(db).list_all()


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_project(body: ProjectCreate, db: Session = Depends(get_db)):
    return ProjectService(db).create(body.model_dump())


@router.get("/{project_id}", response_model=ProjectResponse, dependencies=[Depends(can_read)])
async def get_project(project_id: int, db: Session = Depends(get_readonly_db)):
    return found_or_404(ProjectService(db).get(project_id), "Project")


@router.patch("/{project_id}", response_model=ProjectResponse, dependencies=[Depends(can_write)])
async def update_project(project_id: int, body: ProjectUpdate, db: Session = Depends(get_db)):
    project = ProjectService(db).update(project_id, body.model_dump(exclude_unset=True))
    return found_or_404(project, "Project")


@router.get(
    "/{project_id}/towers",
    response_model=List[TowerResponse],
    dependencies=[Depends(can_read)],
)
async def list_towers(project_id: int, db: Session = Depends(get_readonly_db)):
    service = ProjectService(db)
    found_or_404(service.get(project_id), "Project")
    return service.list_towers(project_id)


@router.post(
    "/{project_id}/towers",
    response_model=TowerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_write)],
)
async def create_tower(project_id: int, body: TowerCreate, db: Session = Depends(get_db)):
    return ProjectService(db).create_tower(project_id, body.model_dump())


@router.get(
    "/{project_id}/units",
    response_model=List[UnitResponse],
    dependencies=[Depends(can_read)],
)
async def list_project_units(project_id: int, db: Session = Depends(get_readonly_db)):
    service = ProjectService(db)
    found_or_404(service.get(project_id), "Project")
    return service.list_units(project_id=project_id)
