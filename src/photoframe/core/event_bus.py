"""Async event bus connecting the engines to their observers.

Engines run their tick callbacks on the asyncio loop and publish state
snapshots with :meth:`EventBus.publish_nowait`; fetchers that run in a
worker thread use :meth:`EventBus.publish_threadsafe`.  Handlers are
dispatched from a single consumer task.

* Handlers may be sync or async.
* A handler that raises is logged and unsubscribed.
* The queue is bounded; on overflow the oldest event is dropped.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from photoframe.core.models.event import Event

_log = logging.getLogger(__name__)


@dataclass
class _Subscription:
    sub_id: str
    event_type: str
    handler: Callable[..., Any]


class EventBus:
    """Pub/sub over an :class:`asyncio.Queue`.

    Args:
        queue_size: Maximum number of events queued before the oldest is dropped.
    """

    def __init__(self, queue_size: int = 1000) -> None:
        self._queue_size = queue_size
        self._queue: asyncio.Queue[Event] | None = None
        self._subscriptions: dict[str, _Subscription] = {}
        self._by_type: dict[str, list[str]] = {}
        self._consumer: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_started(self) -> bool:
        return self._consumer is not None

    async def start(self) -> None:
        """Start the consumer task on the running loop."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._consumer = asyncio.create_task(self._consume(), name="event-bus-consumer")
        _log.info("Event bus started (queue_size=%d)", self._queue_size)

    async def stop(self) -> None:
        """Cancel the consumer and forget all subscriptions."""
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        self._subscriptions.clear()
        self._by_type.clear()
        _log.info("Event bus stopped")

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish_nowait(
        self,
        event_type: str,
        payload: dict[str, Any] | None = None,
        source: str | None = None,
    ) -> None:
        """Enqueue an event from code already running on the loop.

        Events published before :meth:`start` are dropped with a debug log,
        so engines can be driven without a running bus.
        """
        if self._queue is None:
            _log.debug("Event bus not started; dropping %s", event_type)
            return
        event = Event(event_type=event_type, payload=payload or {}, source=source)
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            _log.warning("Event bus queue overflow, dropped oldest event")
            self._queue.put_nowait(event)

    async def publish(
        self,
        event_type: str,
        payload: dict[str, Any] | None = None,
        source: str | None = None,
    ) -> None:
        """Async flavour of :meth:`publish_nowait`."""
        self.publish_nowait(event_type, payload, source)

    def publish_threadsafe(
        self,
        event_type: str,
        payload: dict[str, Any] | None = None,
        source: str | None = None,
    ) -> None:
        """Enqueue an event from a worker thread."""
        if self._loop is None:
            _log.debug("Event bus not started; dropping %s", event_type)
            return
        self._loop.call_soon_threadsafe(self.publish_nowait, event_type, payload, source)

    # ------------------------------------------------------------------
    # Subscribe / unsubscribe
    # ------------------------------------------------------------------

    def subscribe(
        self,
        event_type: str,
        handler: Callable[..., Any],
    ) -> str:
        """Register *handler* for *event_type* and return a subscription id."""
        sub_id = uuid.uuid4().hex
        self._subscriptions[sub_id] = _Subscription(sub_id, event_type, handler)
        self._by_type.setdefault(event_type, []).append(sub_id)
        return sub_id

    def unsubscribe(self, sub_id: str) -> None:
        sub = self._subscriptions.pop(sub_id, None)
        if sub is None:
            return
        ids = self._by_type.get(sub.event_type, [])
        if sub_id in ids:
            ids.remove(sub_id)

    def subscriber_count(self, event_type: str) -> int:
        return len(self._by_type.get(event_type, []))

    # ------------------------------------------------------------------
    # Consumer loop
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            await self._dispatch(event)

    async def _dispatch(self, event: Event) -> None:
        for sub_id in list(self._by_type.get(event.event_type, [])):
            sub = self._subscriptions.get(sub_id)
            if sub is None:
                continue
            try:
                result = sub.handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                _log.exception(
                    "Handler %s for '%s' raised; unsubscribing",
                    sub.handler,
                    event.event_type,
                )
                self.unsubscribe(sub_id)
