"""In-memory event bus and the notifier used after state changes."""

from __future__ import annotations

import itertools
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Protocol

from mission_control.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHANNEL = "mission_control"

HEALTH_CHECK_COMPLETED = "health_check_completed"
INTEGRATION_UPDATED = "integration_updated"


@dataclass(frozen=True)
class BusEvent:
    channel: str
    event_id: str
    type: str
    payload: dict[str, Any]


class EventBus(Protocol):
    """Where notifications are published; a broker-backed bus can stand in."""

    async def publish(self, channel: str, event: BusEvent) -> None: ...


class MemoryEventBus:
    """In-process eventbus keeping a bounded backlog per channel.

    Publishing never waits on readers; consumers read ``backlog``.
    """

    def __init__(self, backlog_size: int = 1000):
        self._backlogs: dict[str, deque[BusEvent]] = defaultdict(lambda: deque(maxlen=backlog_size))

    def backlog(self, channel: str) -> list[BusEvent]:
        return list(self._backlogs[channel])

    async def publish(self, channel: str, event: BusEvent) -> None:
        self._backlogs[channel].append(event)


class EventNotifier:
    """Post-commit hook that broadcasts state changes to subscribers.

    Notification is best-effort: a failing bus is logged and never
    propagates into the request that produced the event.
    """

    def __init__(self, bus: EventBus, channel: str = DEFAULT_CHANNEL):
        self.bus = bus
        self.channel = channel
        self._seq = itertools.count(1)

    async def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        event = BusEvent(
            channel=self.channel,
            event_id=f"{self.channel}:{next(self._seq)}",
            type=event_type,
            payload=payload,
        )
        try:
            await self.bus.publish(self.channel, event)
        except Exception as exc:
            logger.warning(
                "Event broadcast failed",
                data={"event_type": event_type, "error": str(exc)},
            )
