"""
Project domain service: projects, towers and units.

Unit status follows a fixed transition table:

    available -> reserved | blocked
    reserved  -> sold | available | blocked
    sold      -> (terminal)
    blocked   -> available

Every status change goes through ``transition_unit`` so the owning
project's ``available_units`` / ``sold_units`` counters move with it.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logging_config import get_logger
from core.models import Booking, BookingStatus, Project, Tower, Unit, UnitStatus
from domain.base import apply_changes, get_or_raise

LOGGER = get_logger(__name__)

UNIT_STATUS_TRANSITIONS: Dict[UnitStatus, FrozenSet[UnitStatus]] = {
    UnitStatus.AVAILABLE: frozenset({UnitStatus.RESERVED, UnitStatus.BLOCKED}),
    UnitStatus.RESERVED: frozenset({UnitStatus.SOLD, UnitStatus.AVAILABLE, UnitStatus.BLOCKED}),
    UnitStatus.SOLD: frozenset(),
    UnitStatus.BLOCKED: frozenset({UnitStatus.AVAILABLE}),
}


def can_transition_unit(current: str, target: str) -> bool:
    """Whether a unit may move from ``current`` to ``target``."""
    try:
        return UnitStatus(target) in UNIT_STATUS_TRANSITIONS[UnitStatus(current)]
    except ValueError:
        return False


class ProjectService:
    """Service for projects, towers and units."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Project:
        project = Project(**data)
        self.session.add(project)
        self.session.flush()
        self.session.refresh(project)
        LOGGER.info(f"Project created: {project.name} ({project.total_units} units)")
        return project

    def get(self, project_id: int) -> Optional[Project]:
        return self.session.get(Project, project_id)

    def list_all(self) -> List[Project]:
        return (
            self.session.query(Project)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    def update(self, project_id: int, changes: Dict[str, Any]) -> Optional[Project]:
        project = self.get(project_id)
        if project is None:
            return None
        apply_changes(project, changes)
        self.session.flush()
        return project

    # -------------------------------------------------------------------------
    # Towers
    # -------------------------------------------------------------------------

    def create_tower(self, project_id: int, data: Dict[str, Any]) -> Tower:
        get_or_raise(self.session, Project, project_id, "Project")
        payload = dict(data)
        if payload.get("total_units") is None:
            payload["total_units"] = payload["total_floors"] * payload["units_per_floor"]

        tower = Tower(project_id=project_id, **payload)
        self.session.add(tower)
        self.session.flush()
        self.session.refresh(tower)
        return tower

    def list_towers(self, project_id: int) -> List[Tower]:
        return (
            self.session.query(Tower)
            .filter(Tower.project_id == project_id)
            .order_by(Tower.id.asc())
            .all()
        )

    # -------------------------------------------------------------------------
    # Units
    # -------------------------------------------------------------------------

    def create_unit(self, data: Dict[str, Any]) -> Unit:
        """Insert a unit; the tower must belong to the given project."""
        tower = get_or_raise(self.session, Tower, data["tower_id"], "Tower")
        payload = dict(data)
        project_id = payload.get("project_id") or tower.project_id
        if project_id != tower.project_id:
            raise ValidationError.for_field("project_id", "Tower does not belong to this project")
        payload["project_id"] = project_id

        unit = Unit(**payload)
        self.session.add(unit)
        self.session.flush()
        self.session.refresh(unit)
        return unit

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.session.get(Unit, unit_id)

    def list_units(
        self,
        project_id: Optional[int] = None,
        tower_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Unit]:
        query = self.session.query(Unit)
        if project_id is not None:
            query = query.filter(Unit.project_id == project_id)
        if tower_id is not None:
            query = query.filter(Unit.tower_id == tower_id)
        if status:
            query = query.filter(Unit.status == status)
        return query.order_by(Unit.project_id.asc(), Unit.id.asc()).all()

    def _has_active_booking(self, unit_id: int) -> bool:
        return (
            self.session.query(Booking.id)
            .filter(Booking.unit_id == unit_id, Booking.status == BookingStatus.ACTIVE.value)
            .first()
            is not None
        )

    def update_unit_status(self, unit_id: int, status: str) -> Unit:
        """
        Move a unit to a new status by hand and adjust its project's counters.

        Setting the current status again is a no-op. A unit held by an
        active booking only moves through that booking.

        Raises:
            NotFoundError: Unknown unit.
            ConflictError: The transition is not allowed, or the unit has
                an active booking.
        """
        unit = self.get_unit(unit_id)
        if unit is None:
            raise NotFoundError("Unit", unit_id)
        if unit.status == UnitStatus(status).value:
            return unit
        if self._has_active_booking(unit.id):
            raise ConflictError(
                f"Unit {unit.unit_number} has an active booking; update the booking instead"
            )
        return self.transition_unit(unit, status)

    def transition_unit(self, unit: Unit, status: str) -> Unit:
        """
        Apply one step of the unit status table and move the project counters.

        Booking changes call this directly; the booking is responsible for
        keeping itself and the unit consistent.
        """
        current = UnitStatus(unit.status)
        target = UnitStatus(status)
        if current == target:
            return unit
        if not can_transition_unit(current, target):
            raise ConflictError(f"Unit cannot move from {current.value} to {target.value}")

        project = unit.project
        if current == UnitStatus.AVAILABLE:
            project.available_units = max(project.available_units - 1, 0)
        if target == UnitStatus.AVAILABLE:
            project.available_units += 1
        if target == UnitStatus.SOLD:
            project.sold_units = (project.sold_units or 0) + 1

        unit.status = target.value
        self.session.flush()

        LOGGER.info(
            f"Unit {unit.id} status: {current.value} -> {target.value}",
            extra={"extra_data": {"unit_id": unit.id, "project_id": project.id}},
        )
        return unit
