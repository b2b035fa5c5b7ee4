"""API route modules."""
from __future__ import annotations

from . import (
    health,
    auth,
    users,
    dashboard,
    leads,
    projects,
    units,
    communications,
    customers,
    bookings,
    payments,
    channel_partners,
)

__all__ = [
    "health",
    "auth",
    "users",
    "dashboard",
    "leads",
    "projects",
    "units",
    "communications",
    "customers",
    "bookings",
    "payments",
    "channel_partners",
]
