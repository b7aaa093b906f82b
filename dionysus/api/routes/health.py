"""
Health Check Endpoints - Application health and status monitoring.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dionysus.core.config import get_settings, Settings
from dionysus.db.database import get_db
from dionysus.models.responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check if the API is running and healthy"
)
async def health_check(
    settings: Settings = Depends(get_settings)
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        HealthResponse with status and version info
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    summary="Readiness Check",
    description="Check if the API is ready to accept requests"
)
def readiness_check(
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
) -> dict:
    """
    Readiness check for container orchestration.

    The database must answer; missing AI or GitHub credentials are reported
    but do not make the service unready.
    """
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Readiness: database unavailable: {e}")
        database_ok = False

    checks = {
        "api": True,
        "config_loaded": settings is not None,
        "database": database_ok,
        "llm_configured": bool(settings.gemini_api_key),
        "github_token_configured": bool(settings.github_token),
    }

    return {
        "ready": checks["api"] and checks["config_loaded"] and database_ok,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get(
    "/live",
    summary="Liveness Check",
    description="Simple liveness probe"
)
async def liveness_check() -> dict:
    """Returns OK if the server is running."""
    return {"status": "alive"}
