"""Domain layer for the realty sales CRM.

Data access services, dashboard aggregation, pipeline grouping and role
permissions. The API and CLI go through these services rather than the
ORM directly.
"""
from __future__ import annotations

from .bookings import BookingService, PaymentService
from .communications import CommunicationService
from .customers import CustomerService
from .leads import LeadService
from .metrics import DashboardMetrics, MetricsService, calculate_conversion_rate
from .partners import ChannelPartnerService
from .permissions import Capability, capabilities_for, has_capability
from .pipeline import PIPELINE_STAGES, build_pipeline, group_leads_by_status
from .projects import ProjectService, can_transition_unit
from .users import UserService

__all__ = [
    # Services
    "LeadService",
    "ProjectService",
    "CommunicationService",
    "CustomerService",
    "BookingService",
    "PaymentService",
    "ChannelPartnerService",
    "UserService",
    # Metrics
    "MetricsService",
    "DashboardMetrics",
    "calculate_conversion_rate",
    # Pipeline
    "PIPELINE_STAGES",
    "build_pipeline",
    "group_leads_by_status",
    # Units / permissions
    "can_transition_unit",
    "Capability",
    "capabilities_for",
    "has_capability",
]
