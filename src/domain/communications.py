"""Communication log service."""
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from core.logging_config import get_logger
from core.models import Communication, CommunicationStatus, Lead, User
from core.utils import utcnow
from domain.base import get_or_raise

LOGGER = get_logger(__name__)


class CommunicationService:
    """Service for lead communications (calls, emails, meetings...)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: Dict[str, Any]) -> Communication:
        """
        Log a communication against a lead.

        A completed communication also stamps the lead's ``last_contacted_at``
        with its completion time (now when none is given).
        """
        lead = get_or_raise(self.session, Lead, data["lead_id"], "Lead")
        get_or_raise(self.session, User, data["user_id"], "User")

        payload = dict(data)
        if payload.get("status") is None:
            payload["status"] = CommunicationStatus.COMPLETED.value
        if payload["status"] == CommunicationStatus.COMPLETED.value:
            payload["completed_at"] = payload.get("completed_at") or utcnow()
            lead.last_contacted_at = payload["completed_at"]

        communication = Communication(**payload)
        self.session.add(communication)
        self.session.flush()
        self.session.refresh(communication)

        LOGGER.debug(f"Communication {communication.id} ({communication.type}) logged for lead {lead.id}")
        return communication

    def list_by_lead(self, lead_id: int) -> List[Communication]:
        return (
            self.session.query(Communication)
            .filter(Communication.lead_id == lead_id)
            .order_by(Communication.created_at.desc(), Communication.id.desc())
            .all()
        )

    def list_recent(self, limit: int = 10) -> List[Communication]:
        """Most recent communications across all leads."""
        return (
            self.session.query(Communication)
            .order_by(Communication.created_at.desc(), Communication.id.desc())
            .limit(limit)
            .all()
        )
