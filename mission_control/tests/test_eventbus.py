import asyncio

import pytest

from mission_control.core.eventbus import DEFAULT_CHANNEL, BusEvent, EventNotifier, MemoryEventBus


def _event(n: int) -> BusEvent:
    return BusEvent(channel="c", event_id=f"c:{n}", type="t", payload={"n": n})


@pytest.mark.asyncio
async def test_backlog_is_bounded():
    bus = MemoryEventBus(backlog_size=2)
    for n in range(3):
        await bus.publish("c", _event(n))

    assert [e.payload["n"] for e in bus.backlog("c")] == [1, 2]
    assert bus.backlog("other") == []


@pytest.mark.asyncio
async def test_publish_does_not_wait_on_readers():
    bus = MemoryEventBus()
    for n in range(3):
        await bus.publish("c", _event(n))

    snapshot = bus.backlog("c")
    await asyncio.wait_for(bus.publish("c", _event(3)), timeout=1)

    assert [e.payload["n"] for e in snapshot] == [0, 1, 2]
    assert [e.payload["n"] for e in bus.backlog("c")] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_notifier_assigns_sequential_ids():
    bus = MemoryEventBus()
    notifier = EventNotifier(bus)

    await notifier.notify("integration_updated", {"id": "a"})
    await notifier.notify("health_check_completed", {"id": "b"})

    events = bus.backlog(DEFAULT_CHANNEL)
    assert [e.event_id for e in events] == [f"{DEFAULT_CHANNEL}:1", f"{DEFAULT_CHANNEL}:2"]
    assert [e.type for e in events] == ["integration_updated", "health_check_completed"]


@pytest.mark.asyncio
async def test_notifier_swallows_bus_failures():
    class DeadBus:
        async def publish(self, channel, event):
            raise ConnectionError("down")

    await EventNotifier(DeadBus()).notify("integration_updated", {})
