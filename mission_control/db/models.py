"""SQLAlchemy database models."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text

from mission_control.core.time import utcnow
from mission_control.db.database import Base

INTEGRATION_TYPES = (
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
)
INTEGRATION_STATUSES = ("connected", "expired", "broken", "unconfigured", "unknown")
HEALTH_TARGET_TYPES = ("capability", "integration")
HEALTH_STATUSES = ("pass", "fail", "warn", "skip")


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def _in(column: str, values: tuple) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Integration(Base):
    """External service or credential endpoint tracked by the dashboard."""

    __tablename__ = "integrations"
    __table_args__ = (
        CheckConstraint(_in("type", INTEGRATION_TYPES), name="ck_integrations_type"),
        CheckConstraint(_in("status", INTEGRATION_STATUSES), name="ck_integrations_status"),
        Index("idx_integrations_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)
    provider = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default="unknown")
    credential_source = Column(String(512), nullable=True)
    last_validated = Column(DateTime, nullable=True)
    validation_message = Column(Text, nullable=True)
    config = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes.
    metadata_json = Column("metadata", Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Integration {self.name} ({self.status})>"


class HealthCheck(Base):
    """One immutable record of a single check execution."""

    __tablename__ = "health_checks"
    __table_args__ = (
        CheckConstraint(_in("target_type", HEALTH_TARGET_TYPES), name="ck_health_checks_target_type"),
        CheckConstraint(_in("status", HEALTH_STATUSES), name="ck_health_checks_status"),
        Index("idx_health_checks_target", "target_type", "target_id"),
        Index("idx_health_checks_checked", "checked_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    target_type = Column(String(16), nullable=False)
    target_id = Column(String(36), nullable=False)
    status = Column(String(8), nullable=False)
    message = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    checked_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<HealthCheck {self.target_type}:{self.target_id} {self.status}>"
