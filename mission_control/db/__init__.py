"""Database module for Mission Control."""

from mission_control.db.database import (
    Base,
    dispose_engine,
    get_db,
    get_engine,
    get_session_local,
    verify_database_connection,
)
from mission_control.db.models import HealthCheck, Integration

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "dispose_engine",
    "verify_database_connection",
    "Integration",
    "HealthCheck",
]
