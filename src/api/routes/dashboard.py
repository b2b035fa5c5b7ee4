"""
Dashboard API

Headline figures for the sales dashboard: lead totals, this month's
revenue, conversion rate, active projects, lead breakdowns and the top
performers of the month.
"""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.auth_deps import can_read
from api.deps import get_readonly_db
from core.logging_config import get_logger
from domain.metrics import MetricsService

router = APIRouter()
LOGGER = get_logger(__name__)


# =============================================================================
# Request/Response Models
# =============================================================================


class StatusCountResponse(BaseModel):
    status: str
    count: int


class SourceCountResponse(BaseModel):
    source: str
    count: int


class PerformerResponse(BaseModel):
    user_id: int
    user_name: str
    sales: str
    deals: int


class DashboardMetricsResponse(BaseModel):
    """Dashboard metrics. Money values are two-decimal strings."""
    total_leads: int
    monthly_revenue: str
    conversion_rate: float
    active_projects: int
    leads_by_status: List[StatusCountResponse]
    leads_by_source: List[SourceCountResponse]
    top_performers: List[PerformerResponse]


# =============================================================================
# Routes
# =============================================================================


@router.get("/metrics", response_model=DashboardMetricsResponse, dependencies=[Depends(can_read)])
async def get_dashboard_metrics(db: Session = Depends(get_readonly_db)) -> Dict[str, Any]:
    """
    Compute the dashboard metrics for the current month.

    Aggregation failures surface as a 500 with a generic message.
    """
    return MetricsService(db).get_dashboard_metrics().to_dict()
