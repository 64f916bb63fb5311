"""Pydantic models for configuration, settings, events and engine state."""
from photoframe.core.models.config import FrameConfig, SlideshowConfig, SystemConfig, UploadConfig
from photoframe.core.models.event import Event
from photoframe.core.models.settings import Settings, TimerSettings, WeatherSettings
from photoframe.core.models.state import (
    Direction,
    Duration,
    ImageRecord,
    SlideshowOrder,
    SlideshowState,
    TimerMode,
    TimerPhase,
    TimerState,
)

__all__ = [
    "FrameConfig",
    "SlideshowConfig",
    "SystemConfig",
    "UploadConfig",
    "Event",
    "Settings",
    "TimerSettings",
    "WeatherSettings",
    "Direction",
    "Duration",
    "ImageRecord",
    "SlideshowOrder",
    "SlideshowState",
    "TimerMode",
    "TimerPhase",
    "TimerState",
]
