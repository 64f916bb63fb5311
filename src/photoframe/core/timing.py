"""Tick sources and schedulers.

``AsyncioTickSource`` / ``AsyncioScheduler`` drive the engines inside the
NiceGUI event loop.  ``ManualTickSource`` / ``ManualScheduler`` are the
deterministic backends, the timing counterpart of mock hardware: nothing
happens until ``fire()`` or ``run_pending()`` is called.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from photoframe.core.interfaces.timing import Cancellable, Scheduler, TickSource

_log = logging.getLogger(__name__)


class AsyncioTickSource(TickSource):
    """Invokes a callback every *interval* seconds from an asyncio task.

    Ticks are aligned to the start time rather than chained sleeps, so a
    slow callback does not make the clock drift.  Must be started from a
    coroutine or callback running on the loop.
    """

    def __init__(self, interval: float = 1.0, name: str = "tick") -> None:
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._callback: Callable[[], None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], None]) -> None:
        if self.is_running:
            return
        self._callback = callback
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(loop), name=f"tick-{self._name}")
        _log.debug("Tick source %s started", self._name)

    def stop(self) -> None:
        self._callback = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
            _log.debug("Tick source %s stopped", self._name)

    async def _run(self, loop: asyncio.AbstractEventLoop) -> None:
        started = loop.time()
        count = 0
        while True:
            count += 1
            await asyncio.sleep(max(0.0, started + count * self._interval - loop.time()))
            callback = self._callback
            if callback is None:
                return
            try:
                callback()
            except Exception:
                _log.exception("Tick callback for %s raised", self._name)


class AsyncioScheduler(Scheduler):
    """``loop.call_later`` with exception logging."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        def _guarded() -> None:
            try:
                callback()
            except Exception:
                _log.exception("Scheduled callback %s raised", callback)

        return asyncio.get_running_loop().call_later(delay, _guarded)


class ManualTickSource(TickSource):
    """Tick source advanced explicitly with :meth:`fire`."""

    def __init__(self) -> None:
        self._callback: Callable[[], None] | None = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        if self.is_running:
            return
        self.start_calls += 1
        self._callback = callback

    def stop(self) -> None:
        if self._callback is not None:
            self.stop_calls += 1
        self._callback = None

    def fire(self, count: int = 1) -> int:
        """Deliver up to *count* ticks; returns how many were delivered.

        Delivery stops early if the owner stops the source mid-way.
        """
        delivered = 0
        for _ in range(count):
            callback = self._callback
            if callback is None:
                break
            callback()
            delivered += 1
        return delivered


class _ManualHandle:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Queues delayed calls until :meth:`run_pending` is invoked."""

    def __init__(self) -> None:
        self._queue: list[_ManualHandle] = []

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        handle = _ManualHandle(delay, callback)
        self._queue.append(handle)
        return handle

    def run_pending(self) -> int:
        """Run every queued, uncancelled call; returns how many ran."""
        batch, self._queue = self._queue, []
        ran = 0
        for handle in batch:
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran
