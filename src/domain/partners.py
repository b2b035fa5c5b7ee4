"""Channel partner service. Totals are plain values maintained through updates."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.logging_config import get_logger
from core.models import ChannelPartner
from domain.base import apply_changes

LOGGER = get_logger(__name__)


class ChannelPartnerService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: Dict[str, Any]) -> ChannelPartner:
        partner = ChannelPartner(**data)
        self.session.add(partner)
        self.session.flush()
        self.session.refresh(partner)
        LOGGER.info(f"Channel partner created: {partner.name}")
        return partner

    def get(self, partner_id: int) -> Optional[ChannelPartner]:
        return self.session.get(ChannelPartner, partner_id)

    def list_all(self) -> List[ChannelPartner]:
        return (
            self.session.query(ChannelPartner)
            .order_by(ChannelPartner.created_at.desc(), ChannelPartner.id.desc())
            .all()
        )

    def update(self, partner_id: int, changes: Dict[str, Any]) -> Optional[ChannelPartner]:
        partner = self.get(partner_id)
        if partner is None:
            return None
        apply_changes(partner, changes)
        self.session.flush()
        return partner
