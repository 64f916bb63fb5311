"""Abstract interfaces for timing and persistence backends."""

from photoframe.core.interfaces.storage import SettingsStorage
from photoframe.core.interfaces.timing import Cancellable, Scheduler, TickSource

__all__ = ["Cancellable", "Scheduler", "SettingsStorage", "TickSource"]
