"""
Health check router.

Provides liveness and readiness probes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = settings.SERVICE_NAME
    version: str = settings.SERVICE_VERSION


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check.

    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error("Readiness database check failed", error=str(e))
        checks["database"] = "unhealthy"

    ready = all(check == "healthy" for check in checks.values())
    response = ReadinessResponse(ready=ready, checks=checks, timestamp=_now())
    if not ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump()
        )
    return response
