"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 until settings are loaded and migrated (readiness)
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from domain_settings import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "domain-settings",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — settings loaded, migrated, and permissions unpacked."""
    manager = getattr(request.app.state, "settings_manager", None)
    if manager is None or not manager.ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "settings_not_loaded",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "settings": "loaded",
            "schema_version": manager.schema.version,
            "directory_sync": "enabled" if manager.directory_sync.enabled else "disabled",
        },
    }
