"""Shared FastAPI dependencies."""

from fastapi import Request

from mission_control.config import get_settings
from mission_control.core.eventbus import EventNotifier, MemoryEventBus
from mission_control.integrations.tester import IntegrationTester


def get_integration_tester(request: Request) -> IntegrationTester:
    """Tester from app state, built from settings on first use."""
    tester = getattr(request.app.state, "integration_tester", None)
    if tester is None:
        tester = IntegrationTester.from_settings(get_settings())
        request.app.state.integration_tester = tester
    return tester


def get_notifier(request: Request) -> EventNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        bus = MemoryEventBus(backlog_size=get_settings().eventbus_backlog)
        request.app.state.eventbus = bus
        notifier = EventNotifier(bus)
        request.app.state.notifier = notifier
    return notifier
