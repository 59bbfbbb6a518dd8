"""
Liveness and readiness probes.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from mission_control import __version__
from mission_control.config import get_settings
from mission_control.db import verify_database_connection

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthcheck() -> dict[str, Any]:
    """Basic liveness signal for load balancers and process supervisors."""
    settings = get_settings()
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.environment,
    }


@router.get("/readyz")
async def readiness() -> JSONResponse:
    """Readiness check: the database must answer."""
    checks: dict[str, bool] = {
        "database": verify_database_connection(),
        "config": True,
    }
    all_ready = all(checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ready else "not_ready",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )
