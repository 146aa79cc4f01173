"""Health check endpoints for system monitoring."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.rate_limiter import RateLimiter, get_rate_limiter
from app.core.realtime import PresenceRegistry
from app.db.db import get_db
from app.dependencies import get_presence_registry

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "sayarti-messaging"}


@router.get("/health/realtime")
async def realtime_health(
    presence: Optional[PresenceRegistry] = Depends(get_presence_registry),
):
    """Health check for the realtime presence registry."""
    if presence is None or not presence.started:
        return {"status": "unhealthy", "registry_started": False, "online_users": 0}

    return {
        "status": "healthy",
        "registry_started": True,
        "online_users": presence.online_count(),
    }


@router.get("/health/database")
def database_health(db: Session = Depends(get_db)):
    """Health check for database connection."""
    try:
        # Simple query to test database connection
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database_connected": True}
    except Exception as e:
        return {"status": "unhealthy", "database_connected": False, "error": str(e)}


@router.get("/health/ready")
def readiness_check(
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
    presence: Optional[PresenceRegistry] = Depends(get_presence_registry),
):
    """Readiness check for Kubernetes/container orchestration."""
    try:
        # Check database
        db.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service not ready: {str(e)}",
        ) from e

    if presence is None or not presence.started:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready: realtime registry not started",
        )

    # Rate limiting fails open, so Redis being down only degrades readiness info
    return {"status": "ready", "redis_connected": limiter.ping()}


@router.get("/health/live")
async def liveness_check():
    """Liveness check for Kubernetes/container orchestration."""
    return {"status": "alive"}
