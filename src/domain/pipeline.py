"""
Pipeline bucketing for leads.

``group_leads_by_status`` is pure: it reads only ``lead.status`` (attribute
or mapping key) and never mutates its input.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from core.models import LeadStatus

PIPELINE_STAGES: List[Dict[str, str]] = [
    {"status": LeadStatus.NEW.value, "title": "New Leads"},
    {"status": LeadStatus.CONTACTED.value, "title": "Contacted"},
    {"status": LeadStatus.SITE_VISIT.value, "title": "Site Visit"},
    {"status": LeadStatus.NEGOTIATION.value, "title": "Negotiation"},
    {"status": LeadStatus.BOOKING.value, "title": "Booking"},
    {"status": LeadStatus.SOLD.value, "title": "Sold"},
    {"status": LeadStatus.LOST.value, "title": "Lost"},
]

STATUS_ALIASES: Dict[str, str] = {
    "sale": LeadStatus.SOLD.value,
}

FALLBACK_STATUS = LeadStatus.NEW.value

_CANONICAL = {stage["status"] for stage in PIPELINE_STAGES}


def _status_of(lead: Any) -> Optional[str]:
    if isinstance(lead, dict):
        return lead.get("status")
    return getattr(lead, "status", None)


def normalize_status(status: Optional[str]) -> str:
    """Map a raw status onto a pipeline stage; unknown or missing goes to ``new``."""
    if not status:
        return FALLBACK_STATUS
    key = str(status).strip().lower()
    key = STATUS_ALIASES.get(key, key)
    return key if key in _CANONICAL else FALLBACK_STATUS


def group_leads_by_status(leads: Iterable[Any]) -> Dict[str, List[Any]]:
    """
    Bucket leads by pipeline stage.

    Every stage key is present (possibly empty) in pipeline order, and
    leads keep their input order within a bucket.
    """
    grouped: Dict[str, List[Any]] = {stage["status"]: [] for stage in PIPELINE_STAGES}
    for lead in leads:
        grouped[normalize_status(_status_of(lead))].append(lead)
    return grouped


def build_pipeline(leads: Iterable[Any], preview: Optional[int] = None) -> List[Dict[str, Any]]:
    """Pipeline view: one entry per stage with its count and (optionally truncated) leads."""
    grouped = group_leads_by_status(leads)
    return [
        {
            "status": stage["status"],
            "title": stage["title"],
            "count": len(grouped[stage["status"]]),
            "leads": grouped[stage["status"]] if preview is None else grouped[stage["status"]][:preview],
        }
        for stage in PIPELINE_STAGES
    ]
