"""Integration storage: CRUD plus recording of test outcomes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from mission_control.core.exceptions import NotFoundError
from mission_control.core.logging import get_logger
from mission_control.core.time import isoformat, utcnow
from mission_control.db.models import HealthCheck, Integration
from mission_control.integrations.types import TestResult

logger = get_logger(__name__)

# API field name -> model attribute, for fields clients may write.
WRITABLE_FIELDS = {
    "name": "name",
    "type": "type",
    "provider": "provider",
    "status": "status",
    "credential_source": "credential_source",
    "validation_message": "validation_message",
    "last_validated": "last_validated",
    "config": "config",
    "metadata": "metadata_json",
}


def serialize_integration(row: Integration) -> Dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "type": row.type,
        "provider": row.provider,
        "status": row.status,
        "credential_source": row.credential_source,
        "last_validated": isoformat(row.last_validated),
        "validation_message": row.validation_message,
        "config": row.config,
        "metadata": row.metadata_json,
        "created_at": isoformat(row.created_at),
        "updated_at": isoformat(row.updated_at),
    }


def serialize_health_check(row: HealthCheck, target_name: Optional[str] = None) -> Dict[str, Any]:
    payload = {
        "id": row.id,
        "target_type": row.target_type,
        "target_id": row.target_id,
        "status": row.status,
        "message": row.message,
        "duration_ms": row.duration_ms,
        "checked_at": isoformat(row.checked_at),
    }
    if target_name is not None:
        payload["target_name"] = target_name
    return payload


class IntegrationService:
    """Keyed reads and writes over the integrations table."""

    def __init__(self, db: DBSession):
        self.db = db

    def list_integrations(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
    ) -> List[Integration]:
        query = self.db.query(Integration)
        if status:
            query = query.filter(Integration.status == status)
        if type:
            query = query.filter(Integration.type == type)
        return query.order_by(Integration.name).all()

    def find_integration(self, integration_id: str) -> Optional[Integration]:
        return self.db.get(Integration, integration_id)

    def get_integration(self, integration_id: str, not_found: str = "Not found") -> Integration:
        row = self.find_integration(integration_id)
        if row is None:
            raise NotFoundError(not_found)
        return row

    def create_integration(self, data: Dict[str, Any]) -> Integration:
        row = Integration(status="unknown")
        self._apply(row, data)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Integration created", data={"id": row.id, "type": row.type, "provider": row.provider})
        return row

    def update_integration(self, integration_id: str, data: Dict[str, Any]) -> Integration:
        row = self.get_integration(integration_id)
        self._apply(row, data)
        row.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete_integration(self, integration_id: str) -> None:
        row = self.get_integration(integration_id)
        self.db.delete(row)
        self.db.commit()
        logger.info("Integration deleted", data={"id": integration_id})

    def record_test_result(
        self, integration: Integration, result: TestResult
    ) -> Tuple[HealthCheck, Integration]:
        """Write the audit row and the live status fields in one commit."""
        now = utcnow()
        check = HealthCheck(
            target_type="integration",
            target_id=integration.id,
            status=result.status.value,
            message=result.message,
            duration_ms=result.duration_ms,
            checked_at=now,
        )
        self.db.add(check)
        integration.status = result.integration_status
        integration.last_validated = now
        integration.validation_message = result.message
        integration.updated_at = now
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(check)
        self.db.refresh(integration)
        logger.info(
            "Integration tested",
            data={
                "id": integration.id,
                "provider": integration.provider,
                "status": check.status,
                "duration_ms": check.duration_ms,
            },
        )
        return check, integration

    @staticmethod
    def _apply(row: Integration, data: Dict[str, Any]) -> None:
        for field, attr in WRITABLE_FIELDS.items():
            if field in data:
                setattr(row, attr, data[field])
