"""Timing abstraction interfaces (ABCs).

The engines never create timers themselves; they are handed a
:class:`TickSource` (the one-second heartbeat they own the lifecycle of)
and, for the slideshow, a :class:`Scheduler` for one-shot delays.  The
asyncio and manual backends both implement these interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TickSource(ABC):
    """Repeating timer that invokes a callback once per interval."""

    @abstractmethod
    def start(self, callback: Callable[[], None]) -> None:
        """Begin invoking *callback*.  No-op if already running."""

    @abstractmethod
    def stop(self) -> None:
        """Stop ticking.  The callback is never invoked after this returns."""

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """``True`` while the callback is scheduled."""


class Scheduler(ABC):
    """One-shot delayed calls."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        """Invoke *callback* once after *delay* seconds."""
