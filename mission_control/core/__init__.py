"""Core module with logging, middleware, events and exception handling."""

from mission_control.core.eventbus import EventNotifier, MemoryEventBus
from mission_control.core.exceptions import (
    IntegrationTestError,
    MissionControlError,
    NotFoundError,
    RequestValidationFailed,
    setup_exception_handlers,
)
from mission_control.core.logging import get_logger, setup_logging
from mission_control.core.middleware import RequestContextMiddleware

__all__ = [
    "get_logger",
    "setup_logging",
    "EventNotifier",
    "MemoryEventBus",
    "IntegrationTestError",
    "MissionControlError",
    "NotFoundError",
    "RequestValidationFailed",
    "RequestContextMiddleware",
    "setup_exception_handlers",
]
