"""Health check routes."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.deps import get_readonly_db
from core.config import get_settings
from core.db import REQUIRED_TABLES
from core.logging_config import get_logger
from core.utils import utcnow

router = APIRouter()
LOGGER = get_logger(__name__)
SETTINGS = get_settings()


@router.get("/detailed")
async def detailed_health_check(
    db: Session = Depends(get_readonly_db),
) -> Dict[str, Any]:
    """Detailed health check: database connectivity and schema."""
    status = "healthy"
    checks: Dict[str, Any] = {}

    try:
        db.execute(text("SELECT 1"))
        existing = set(inspect(db.get_bind()).get_table_names())
        missing = [t for t in REQUIRED_TABLES if t not in existing]
        checks["database"] = {
            "status": "healthy" if not missing else "degraded",
            "connected": True,
            "tables_missing": missing,
        }
        if missing:
            status = "degraded"
    except SQLAlchemyError as e:
        LOGGER.error(f"Database health check failed: {e}")
        status = "unhealthy"
        checks["database"] = {"status": "unhealthy", "connected": False}

    return {
        "status": status,
        "timestamp": utcnow().isoformat(),
        "environment": SETTINGS.environment,
        "checks": checks,
    }
