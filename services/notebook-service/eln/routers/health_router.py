"""
Health check and monitoring router.

Provides endpoints for liveness and readiness probes.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import __version__
from ..config import settings
from ..database import check_db, get_db

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = settings.SERVICE_NAME
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check():
    """Always returns 200 OK while the process is running."""
    return HealthResponse(status="healthy", timestamp=datetime.utcnow().isoformat())


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
async def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check.

    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {"database": "healthy" if check_db(db) else "unhealthy"}
    ready = all(check == "healthy" for check in checks.values())
    body = ReadinessResponse(
        ready=ready, checks=checks, timestamp=datetime.utcnow().isoformat()
    )
    if not ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump()
        )
    return body
