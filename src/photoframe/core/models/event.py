"""Pydantic model for event bus messages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Event(BaseModel):
    """A state-change notification published by an engine or the settings store.

    Views subscribe to these and re-render; they never mutate engine state
    from an event handler.
    """

    event_type: str = Field(description="Dot-separated type, e.g. 'timer.state.changed'")
    payload: dict[str, Any] = Field(default_factory=dict)
    source: str | None = Field(default=None, description="Publishing component, if known")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
