"""Customer domain service."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.logging_config import get_logger
from core.models import Customer, Lead, User
from domain.base import apply_changes, check_reference

LOGGER = get_logger(__name__)


class CustomerService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _check_references(self, data: Dict[str, Any]) -> None:
        if "lead_id" in data:
            check_reference(self.session, Lead, data["lead_id"], "Lead")
        if "assigned_to" in data:
            check_reference(self.session, User, data["assigned_to"], "Assigned user")

    def _ordered(self):
        return self.session.query(Customer).order_by(
            Customer.created_at.desc(), Customer.id.desc()
        )

    def create(self, data: Dict[str, Any]) -> Customer:
        self._check_references(data)
        customer = Customer(**data)
        self.session.add(customer)
        self.session.flush()
        self.session.refresh(customer)
        LOGGER.info(f"Customer created: {customer.id}")
        return customer

    def get(self, customer_id: int) -> Optional[Customer]:
        return self.session.get(Customer, customer_id)

    def list_all(self) -> List[Customer]:
        return self._ordered().all()

    def list_by_assignee(self, user_id: int) -> List[Customer]:
        return self._ordered().filter(Customer.assigned_to == user_id).all()

    def update(self, customer_id: int, changes: Dict[str, Any]) -> Optional[Customer]:
        customer = self.get(customer_id)
        if customer is None:
            return None
        self._check_references(changes)
        apply_changes(customer, changes)
        self.session.flush()
        return customer
