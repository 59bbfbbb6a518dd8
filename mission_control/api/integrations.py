"""Integration endpoints: CRUD and the connection test."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session as DBSession

from mission_control.api.dependencies import get_integration_tester, get_notifier
from mission_control.core.eventbus import HEALTH_CHECK_COMPLETED, INTEGRATION_UPDATED, EventNotifier
from mission_control.core.exceptions import IntegrationTestError, NotFoundError, RequestValidationFailed
from mission_control.core.logging import get_logger
from mission_control.db import get_db
from mission_control.integrations.tester import IntegrationTester
from mission_control.services.integration_service import (
    IntegrationService,
    serialize_health_check,
    serialize_integration,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/integrations", tags=["integrations"])

IntegrationType = Literal[
    "api_key",
    "cli_auth",
    "credential_provider",
    "mcp_plugin",
    "mcp_server",
    "webhook",
    "cli_tool",
    "oauth_token",
    "browser_profile",
    "cron_job",
]
IntegrationStatus = Literal["connected", "expired", "broken", "unconfigured", "unknown"]


class IntegrationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: IntegrationType
    provider: Optional[str] = Field(default=None, max_length=64)
    status: Optional[IntegrationStatus] = None
    credential_source: Optional[str] = Field(default=None, max_length=512)
    config: Optional[str] = None
    metadata: Optional[str] = None


class IntegrationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[IntegrationType] = None
    provider: Optional[str] = Field(default=None, max_length=64)
    status: Optional[IntegrationStatus] = None
    credential_source: Optional[str] = Field(default=None, max_length=512)
    validation_message: Optional[str] = None
    last_validated: Optional[datetime] = None
    config: Optional[str] = None
    metadata: Optional[str] = None

    @field_validator("last_validated")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(UTC).replace(tzinfo=None)
        return v


@router.get("")
async def list_integrations(
    status_filter: Optional[IntegrationStatus] = Query(default=None, alias="status"),
    type_filter: Optional[IntegrationType] = Query(default=None, alias="type"),
    db: DBSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    rows = IntegrationService(db).list_integrations(status=status_filter, type=type_filter)
    return [serialize_integration(row) for row in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_integration(
    body: IntegrationCreate,
    db: DBSession = Depends(get_db),
    notifier: EventNotifier = Depends(get_notifier),
) -> Dict[str, Any]:
    row = IntegrationService(db).create_integration(body.model_dump(exclude_none=True))
    payload = serialize_integration(row)
    await notifier.notify(INTEGRATION_UPDATED, payload)
    return payload


@router.get("/{integration_id}")
async def get_integration(
    integration_id: str,
    db: DBSession = Depends(get_db),
) -> Dict[str, Any]:
    return serialize_integration(IntegrationService(db).get_integration(integration_id))


@router.patch("/{integration_id}")
async def update_integration(
    integration_id: str,
    body: IntegrationUpdate,
    db: DBSession = Depends(get_db),
    notifier: EventNotifier = Depends(get_notifier),
) -> Dict[str, Any]:
    data = body.model_dump(exclude_unset=True)
    if not data:
        raise RequestValidationFailed("No updates provided")
    row = IntegrationService(db).update_integration(integration_id, data)
    payload = serialize_integration(row)
    await notifier.notify(INTEGRATION_UPDATED, payload)
    return payload


@router.delete("/{integration_id}")
async def delete_integration(
    integration_id: str,
    db: DBSession = Depends(get_db),
) -> Dict[str, bool]:
    IntegrationService(db).delete_integration(integration_id)
    return {"success": True}


@router.post("/{integration_id}/test")
async def run_integration_test(
    integration_id: str,
    db: DBSession = Depends(get_db),
    tester: IntegrationTester = Depends(get_integration_tester),
    notifier: EventNotifier = Depends(get_notifier),
) -> Dict[str, Any]:
    """Test an integration's credential and record the outcome.

    Writes one health check row and updates the integration's status,
    last_validated and validation_message together, then broadcasts
    ``health_check_completed`` and ``integration_updated``.
    """
    service = IntegrationService(db)
    try:
        integration = service.get_integration(integration_id, not_found="Integration not found")
        result = await tester.run(integration)
        check, updated = service.record_test_result(integration, result)
    except NotFoundError:
        raise
    except Exception as exc:
        logger.error(
            "Failed to test integration",
            data={"id": integration_id, "error": f"{type(exc).__name__}: {exc}"},
            exc_info=True,
        )
        raise IntegrationTestError() from exc

    check_payload = serialize_health_check(check)
    payload = serialize_integration(updated)
    await notifier.notify(HEALTH_CHECK_COMPLETED, check_payload)
    await notifier.notify(INTEGRATION_UPDATED, payload)
    return payload
