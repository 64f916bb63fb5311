"""Core: event bus, tick sources, the timer and slideshow engines, orchestration."""

from photoframe.core.event_bus import EventBus
from photoframe.core.slideshow_engine import SlideshowEngine
from photoframe.core.timer_engine import TimerEngine
from photoframe.core.timing import (
    AsyncioScheduler,
    AsyncioTickSource,
    ManualScheduler,
    ManualTickSource,
)

__all__ = [
    "AsyncioScheduler",
    "AsyncioTickSource",
    "EventBus",
    "ManualScheduler",
    "ManualTickSource",
    "SlideshowEngine",
    "TimerEngine",
]
