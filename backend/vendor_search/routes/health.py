# backend/vendor_search/routes/health.py
"""
Health and metrics endpoints.

Both are public and unauthenticated; /metrics follows the Prometheus
exposition format.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.constants import API_VERSION
from ..database import get_db
from ..monitoring.prometheus_metrics import PrometheusMetrics

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: datetime
    checks: dict


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Basic health check including database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = True
        status = "healthy"
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        db_status = False
        status = "degraded"

    return HealthCheckResponse(
        status=status,
        service="Vendor Search API",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        checks={"database": db_status},
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=PrometheusMetrics.get_metrics(),
        media_type=PrometheusMetrics.get_content_type(),
    )
