"""API routers.

Domain routes live under ``/api``; liveness probes stay at the root.
"""

from fastapi import APIRouter

from mission_control.api.health import router as health_router
from mission_control.api.health_checks import router as health_checks_router
from mission_control.api.integrations import router as integrations_router

router = APIRouter(prefix="/api")

router.include_router(integrations_router)   # /api/integrations
router.include_router(health_checks_router)  # /api/health

__all__ = ["router", "health_router"]
