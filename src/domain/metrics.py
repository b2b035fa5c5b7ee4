"""
Dashboard metrics aggregation.

All figures are computed per call against the current calendar month
(UTC). Any database failure surfaces as ``AggregationError``; a partial
result is never returned.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.exceptions import AggregationError
from core.logging_config import get_logger
from core.models import (
    Booking,
    Lead,
    LeadSource,
    LeadStatus,
    Payment,
    PaymentStatus,
    Project,
    User,
)
from core.utils import money_str, month_bounds

LOGGER = get_logger(__name__)

UNKNOWN_STATUS = "unknown"

STATUS_ORDER: Dict[str, int] = {status.value: index for index, status in enumerate(LeadStatus)}
SOURCE_ORDER: Dict[str, int] = {source.value: index for index, source in enumerate(LeadSource)}


def calculate_conversion_rate(sold: int, total: int) -> float:
    """
    Percentage of leads sold, rounded half-up to one decimal place.

    >>> calculate_conversion_rate(1, 3)
    33.3
    >>> calculate_conversion_rate(0, 0)
    0.0
    """
    if total <= 0:
        return 0.0
    rate = Decimal(sold) * Decimal(1000) / Decimal(total)
    return float(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP) / Decimal(10))


@dataclass
class StatusCount:
    status: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "count": self.count}


@dataclass
class SourceCount:
    source: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "count": self.count}


@dataclass
class Performer:
    """A user's completed sales for the month."""

    user_id: int
    user_name: str
    sales: str
    deals: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "sales": self.sales,
            "deals": self.deals,
        }


@dataclass
class DashboardMetrics:
    """Snapshot of the headline dashboard figures."""

    total_leads: int
    monthly_revenue: str
    conversion_rate: float
    active_projects: int
    leads_by_status: List[StatusCount] = field(default_factory=list)
    leads_by_source: List[SourceCount] = field(default_factory=list)
    top_performers: List[Performer] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "total_leads": self.total_leads,
            "monthly_revenue": self.monthly_revenue,
            "conversion_rate": self.conversion_rate,
            "active_projects": self.active_projects,
            "leads_by_status": [row.to_dict() for row in self.leads_by_status],
            "leads_by_source": [row.to_dict() for row in self.leads_by_source],
            "top_performers": [row.to_dict() for row in self.top_performers],
        }


class MetricsService:
    """Computes the dashboard metrics from the live tables."""

    def __init__(self, session: Session, top_performers_limit: Optional[int] = None) -> None:
        self.session = session
        self.top_performers_limit = (
            top_performers_limit
            if top_performers_limit is not None
            else get_settings().top_performers_limit
        )

    def get_dashboard_metrics(self, now: Optional[datetime] = None) -> DashboardMetrics:
        """
        Compute all dashboard metrics.

        Args:
            now: Reference time for the "current month" window. Defaults to
                the current UTC time.

        Raises:
            AggregationError: Any query failed.
        """
        month_start, month_end = month_bounds(now)
        try:
            total_leads = self._count_leads()
            sold_leads = self._count_leads(LeadStatus.SOLD.value)
            metrics = DashboardMetrics(
                total_leads=total_leads,
                monthly_revenue=self._monthly_revenue(month_start, month_end),
                conversion_rate=calculate_conversion_rate(sold_leads, total_leads),
                active_projects=self._active_projects(),
                leads_by_status=self._leads_by_status(),
                leads_by_source=self._leads_by_source(),
                top_performers=self._top_performers(month_start, month_end),
            )
        except SQLAlchemyError as e:
            LOGGER.error(f"Dashboard metrics aggregation failed: {e}", exc_info=True)
            raise AggregationError("Failed to fetch dashboard metrics") from e

        LOGGER.debug(
            "Dashboard metrics computed",
            extra={"extra_data": {
                "total_leads": metrics.total_leads,
                "monthly_revenue": metrics.monthly_revenue,
                "month_start": month_start.isoformat(),
            }},
        )
        return metrics

    # -------------------------------------------------------------------------
    # Individual aggregates
    # -------------------------------------------------------------------------

    def _count_leads(self, status: Optional[str] = None) -> int:
        query = self.session.query(func.count(Lead.id))
        if status is not None:
            query = query.filter(Lead.status == status)
        return int(query.scalar() or 0)

    def _monthly_revenue(self, month_start: datetime, month_end: datetime) -> str:
        total = (
            self.session.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(
                Payment.status == PaymentStatus.COMPLETED.value,
                Payment.paid_date >= month_start,
                Payment.paid_date < month_end,
            )
            .scalar()
        )
        return money_str(total)

    def _active_projects(self) -> int:
        return int(
            self.session.query(func.count(Project.id))
            .filter(Project.is_active.is_(True))
            .scalar()
            or 0
        )

    def _leads_by_status(self) -> List[StatusCount]:
        rows = self.session.query(Lead.status, func.count(Lead.id)).group_by(Lead.status).all()
        counts: Dict[str, int] = {}
        for status, count in rows:
            key = status if status is not None else UNKNOWN_STATUS
            counts[key] = counts.get(key, 0) + int(count)

        ordered = sorted(counts, key=lambda s: (STATUS_ORDER.get(s, len(STATUS_ORDER)), s == UNKNOWN_STATUS, s))
        return [StatusCount(status=s, count=counts[s]) for s in ordered]

    def _leads_by_source(self) -> List[SourceCount]:
        rows = self.session.query(Lead.source, func.count(Lead.id)).group_by(Lead.source).all()
        ordered = sorted(rows, key=lambda row: (SOURCE_ORDER.get(row[0], len(SOURCE_ORDER)), row[0] or ""))
        return [SourceCount(source=source, count=int(count)) for source, count in ordered]

    def _top_performers(self, month_start: datetime, month_end: datetime) -> List[Performer]:
        """
        Users ranked by completed payment volume this month.

        Users with no qualifying payments are included with zero sales so
        the list is never shorter than it needs to be. Ties are broken by
        user id (creation order).
        """
        sales = func.coalesce(func.sum(Payment.amount), 0)
        rows = (
            self.session.query(
                User.id,
                User.first_name,
                User.last_name,
                sales.label("sales"),
                func.count(func.distinct(Booking.id)).label("deals"),
            )
            .outerjoin(Booking, Booking.assigned_to == User.id)
            .outerjoin(
                Payment,
                and_(
                    Payment.booking_id == Booking.id,
                    Payment.status == PaymentStatus.COMPLETED.value,
                    Payment.paid_date >= month_start,
                    Payment.paid_date < month_end,
                ),
            )
            .group_by(User.id, User.first_name, User.last_name)
            .order_by(sales.desc(), User.id.asc())
            .limit(self.top_performers_limit)
            .all()
        )
        return [
            Performer(
                user_id=user_id,
                user_name=f"{first_name} {last_name}",
                sales=money_str(total),
                deals=int(deals or 0),
            )
            for user_id, first_name, last_name, total, deals in rows
        ]
