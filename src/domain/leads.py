"""Lead domain service - data access for leads and lead conversion."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from core.logging_config import get_logger
from core.models import Customer, Lead, Project, Unit, User
from core.utils import escape_like
from domain.base import apply_changes, check_reference

LOGGER = get_logger(__name__)


class LeadService:
    """Service for lead-related operations."""

    def __init__(self, session: Session) -> None:
        """Initialize the lead service with a database session."""
        self.session = session

    def _check_references(self, data: Dict[str, Any]) -> None:
        if "assigned_to" in data:
            check_reference(self.session, User, data["assigned_to"], "Assigned user")
        if "project_interest" in data:
            check_reference(self.session, Project, data["project_interest"], "Project")
        if "unit_interest" in data:
            check_reference(self.session, Unit, data["unit_interest"], "Unit")

    def _ordered(self):
        return self.session.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc())

    def create(self, data: Dict[str, Any]) -> Lead:
        """Insert a lead after resolving its optional references."""
        self._check_references(data)

        lead = Lead(**data)
        self.session.add(lead)
        self.session.flush()
        self.session.refresh(lead)

        LOGGER.info(
            "Lead created",
            extra={"extra_data": {"lead_id": lead.id, "source": lead.source, "status": lead.status}},
        )
        return lead

    def get(self, lead_id: int) -> Optional[Lead]:
        return self.session.get(Lead, lead_id)

    def list_all(self) -> List[Lead]:
        """All leads, newest first."""
        return self._ordered().all()

    def list_by_status(self, status: str) -> List[Lead]:
        return self._ordered().filter(Lead.status == status).all()

    def list_by_assignee(self, user_id: int) -> List[Lead]:
        return self._ordered().filter(Lead.assigned_to == user_id).all()

    def search(self, query: str) -> List[Lead]:
        """
        Case-insensitive substring match over name, phone and email.

        An empty (or whitespace-only) query matches every lead. LIKE
        wildcards in the query are matched literally.
        """
        term = (query or "").strip()
        if not term:
            return self.list_all()

        pattern = f"%{escape_like(term)}%"
        return (
            self._ordered()
            .filter(
                or_(
                    Lead.first_name.ilike(pattern, escape="\\"),
                    Lead.last_name.ilike(pattern, escape="\\"),
                    Lead.phone.ilike(pattern, escape="\\"),
                    Lead.email.ilike(pattern, escape="\\"),
                )
            )
            .all()
        )

    def update(self, lead_id: int, changes: Dict[str, Any]) -> Optional[Lead]:
        """Partial update; fields not present in ``changes`` are untouched."""
        lead = self.get(lead_id)
        if lead is None:
            return None

        self._check_references(changes)
        old_status = lead.status
        apply_changes(lead, changes)
        self.session.flush()

        if "status" in changes and changes["status"] != old_status:
            LOGGER.info(f"Lead {lead_id} status: {old_status} -> {lead.status}")
        return lead

    def convert_to_customer(self, lead_id: int, extra: Optional[Dict[str, Any]] = None) -> Customer:
        """
        Create a customer from a lead, copying contact details and assignee.

        Raises:
            NotFoundError: The lead does not exist.
            ConflictError: The lead was already converted.
        """
        lead = self.get(lead_id)
        if lead is None:
            raise NotFoundError("Lead", lead_id)

        existing = self.session.query(Customer).filter(Customer.lead_id == lead_id).first()
        if existing is not None:
            raise ConflictError("Lead has already been converted to a customer")

        customer = Customer(
            lead_id=lead.id,
            first_name=lead.first_name,
            last_name=lead.last_name,
            email=lead.email,
            phone=lead.phone,
            assigned_to=lead.assigned_to,
            **(extra or {}),
        )
        self.session.add(customer)
        self.session.flush()
        self.session.refresh(customer)

        LOGGER.info(f"Lead {lead_id} converted to customer {customer.id}")
        return customer
