"""Health check status, history and manual recording."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DBSession

from mission_control.api.dependencies import get_notifier
from mission_control.core.eventbus import HEALTH_CHECK_COMPLETED, EventNotifier
from mission_control.db import get_db
from mission_control.services.health_service import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, HealthService
from mission_control.services.integration_service import serialize_health_check

router = APIRouter(prefix="/health", tags=["health-checks"])


class HealthCheckCreate(BaseModel):
    target_type: Literal["capability", "integration"]
    target_id: str = Field(min_length=1)
    status: Literal["pass", "fail", "warn", "skip"]
    message: Optional[str] = None
    duration_ms: Optional[int] = Field(default=None, ge=0)


@router.get("")
async def health_status(db: DBSession = Depends(get_db)) -> Dict[str, Any]:
    """Latest check per capability and integration, with a summary."""
    return HealthService(db).get_status()


@router.get("/history")
async def health_history(
    target_type: Optional[Literal["capability", "integration"]] = Query(default=None),
    target_id: Optional[str] = Query(default=None),
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    db: DBSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return HealthService(db).get_history(target_type=target_type, target_id=target_id, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_health_check(
    body: HealthCheckCreate,
    db: DBSession = Depends(get_db),
    notifier: EventNotifier = Depends(get_notifier),
) -> Dict[str, Any]:
    check = HealthService(db).record(**body.model_dump())
    payload = serialize_health_check(check)
    await notifier.notify(HEALTH_CHECK_COMPLETED, payload)
    return payload
