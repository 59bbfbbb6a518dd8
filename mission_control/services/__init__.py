"""Domain services backed by the database."""

from mission_control.services.health_service import HealthService
from mission_control.services.integration_service import (
    IntegrationService,
    serialize_health_check,
    serialize_integration,
)

__all__ = [
    "HealthService",
    "IntegrationService",
    "serialize_health_check",
    "serialize_integration",
]
