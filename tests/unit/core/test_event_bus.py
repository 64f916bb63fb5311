"""Tests for the async EventBus."""

import asyncio

import pytest

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.models.event import Event


class TestEventBusSubscribePublish:
    async def test_basic_publish_subscribe(self, event_bus: EventBus):
        received: list[Event] = []

        async def handler(event: Event):
            received.append(event)

        event_bus.subscribe(events.SLIDESHOW_IMAGE_CHANGED, handler)
        await event_bus.publish(events.SLIDESHOW_IMAGE_CHANGED, {"index": 2}, source="slideshow")

        # Give consumer a tick to dispatch.
        await asyncio.sleep(0.1)
        assert len(received) == 1
        assert received[0].event_type == events.SLIDESHOW_IMAGE_CHANGED
        assert received[0].payload == {"index": 2}
        assert received[0].source == "slideshow"

    async def test_publish_nowait_from_loop(self, event_bus: EventBus):
        received: list[Event] = []
        event_bus.subscribe(events.TIMER_COMPLETED, received.append)

        event_bus.publish_nowait(events.TIMER_COMPLETED)
        await asyncio.sleep(0.1)

        assert len(received) == 1
        assert received[0].payload == {}

    async def test_multiple_subscribers(self, event_bus: EventBus):
        counts = {"a": 0, "b": 0}

        async def handler_a(_e: Event):
            counts["a"] += 1

        async def handler_b(_e: Event):
            counts["b"] += 1

        event_bus.subscribe("multi", handler_a)
        event_bus.subscribe("multi", handler_b)
        await event_bus.publish("multi")
        await asyncio.sleep(0.1)

        assert counts == {"a": 1, "b": 1}

    async def test_unsubscribe(self, event_bus: EventBus):
        received: list[Event] = []

        sub_id = event_bus.subscribe("unsub.test", received.append)
        assert event_bus.subscriber_count("unsub.test") == 1
        event_bus.unsubscribe(sub_id)
        assert event_bus.subscriber_count("unsub.test") == 0

        await event_bus.publish("unsub.test")
        await asyncio.sleep(0.1)

        assert received == []

    def test_publish_before_start_is_dropped(self):
        bus = EventBus()
        assert not bus.is_started
        bus.publish_nowait(events.TIMER_STATE_CHANGED, {"phase": "idle"})
        bus.publish_threadsafe(events.PHOTO_UPLOADED, {"filename": "x.jpg"})


class TestEventBusThreadsafe:
    async def test_publish_threadsafe(self, event_bus: EventBus):
        received: list[Event] = []
        event_bus.subscribe(events.PHOTO_UPLOADED, received.append)

        # Simulate an upload request handled in a worker thread.
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: event_bus.publish_threadsafe(events.PHOTO_UPLOADED, {"filename": "a.jpg"}),
        )
        await asyncio.sleep(0.2)

        assert len(received) == 1
        assert received[0].payload["filename"] == "a.jpg"


class TestEventBusErrorRemoval:
    async def test_handler_error_auto_unsubscribes(self, event_bus: EventBus):
        call_count = 0

        async def bad_handler(_e: Event):
            nonlocal call_count
            call_count += 1
            raise RuntimeError("boom")

        event_bus.subscribe("err.test", bad_handler)

        await event_bus.publish("err.test")
        await asyncio.sleep(0.1)
        assert call_count == 1

        await event_bus.publish("err.test")
        await asyncio.sleep(0.1)
        assert call_count == 1

    async def test_failing_handler_does_not_block_others(self, event_bus: EventBus):
        received: list[str] = []

        def bad(_e: Event):
            raise ValueError("nope")

        event_bus.subscribe("mixed", bad)
        event_bus.subscribe("mixed", lambda e: received.append(e.event_type))
        await event_bus.publish("mixed")
        await asyncio.sleep(0.1)

        assert received == ["mixed"]


class TestEventBusOverflow:
    async def test_queue_overflow_drops_oldest(self):
        bus = EventBus(queue_size=2)
        await bus.start()
        received: list[int] = []
        bus.subscribe("n", lambda e: received.append(e.payload["n"]))
        try:
            # No await between publishes: the consumer cannot run yet.
            bus.publish_nowait("n", {"n": 1})
            bus.publish_nowait("n", {"n": 2})
            bus.publish_nowait("n", {"n": 3})
            await asyncio.sleep(0.1)
        finally:
            await bus.stop()

        assert received == [2, 3]

    async def test_stop_clears_subscriptions(self):
        bus = EventBus()
        await bus.start()
        bus.subscribe("x", lambda e: None)
        await bus.stop()
        assert bus.subscriber_count("x") == 0
        assert not bus.is_started
