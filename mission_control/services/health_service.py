"""Health check history and aggregate status."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session as DBSession

from mission_control.core.logging import get_logger
from mission_control.db.models import HEALTH_STATUSES, HealthCheck, Integration
from mission_control.services.integration_service import serialize_health_check

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500


class HealthService:
    def __init__(self, db: DBSession):
        self.db = db

    def _latest(self, target_type: str) -> List[Dict[str, Any]]:
        latest = (
            self.db.query(
                HealthCheck.target_id.label("target_id"),
                func.max(HealthCheck.checked_at).label("max_checked"),
            )
            .filter(HealthCheck.target_type == target_type)
            .group_by(HealthCheck.target_id)
            .subquery()
        )
        query = self.db.query(HealthCheck).join(
            latest,
            and_(
                HealthCheck.target_id == latest.c.target_id,
                HealthCheck.checked_at == latest.c.max_checked,
            ),
        ).filter(HealthCheck.target_type == target_type)

        if target_type == "integration":
            rows = (
                query.add_columns(Integration.name)
                .join(Integration, Integration.id == HealthCheck.target_id)
                .order_by(Integration.name)
                .all()
            )
            return [serialize_health_check(check, name) for check, name in rows]
        return [serialize_health_check(check) for check in query.order_by(HealthCheck.target_id).all()]

    def get_status(self) -> Dict[str, Any]:
        """Latest check per target plus counts by status."""
        capabilities = self._latest("capability")
        integrations = self._latest("integration")
        every = capabilities + integrations
        summary: Dict[str, int] = {"total": len(every)}
        for status in HEALTH_STATUSES:
            summary[status] = sum(1 for c in every if c["status"] == status)
        return {
            "summary": summary,
            "capabilities": capabilities,
            "integrations": integrations,
        }

    def get_history(
        self,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> List[Dict[str, Any]]:
        limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        query = self.db.query(HealthCheck, Integration.name).outerjoin(
            Integration,
            and_(
                HealthCheck.target_type == "integration",
                Integration.id == HealthCheck.target_id,
            ),
        )
        if target_type:
            query = query.filter(HealthCheck.target_type == target_type)
        if target_id:
            query = query.filter(HealthCheck.target_id == target_id)
        rows = query.order_by(HealthCheck.checked_at.desc()).limit(limit).all()
        return [
            {**serialize_health_check(check), "target_name": name}
            for check, name in rows
        ]

    def record(
        self,
        *,
        target_type: str,
        target_id: str,
        status: str,
        message: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> HealthCheck:
        check = HealthCheck(
            target_type=target_type,
            target_id=target_id,
            status=status,
            message=message,
            duration_ms=duration_ms,
        )
        self.db.add(check)
        self.db.commit()
        self.db.refresh(check)
        logger.info(
            "Health check recorded",
            data={"target_type": target_type, "target_id": target_id, "status": status},
        )
        return check
