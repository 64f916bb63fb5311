"""Runtime state models and enumerations for the timer and slideshow engines."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TimerPhase(str, Enum):
    """Lifecycle phase of the countdown / chronometer."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


class TimerMode(str, Enum):
    COUNTDOWN = "countdown"
    CHRONOMETER = "chronometer"


class SlideshowOrder(str, Enum):
    SEQUENTIAL = "sequential"
    RANDOM = "random"


class Direction(str, Enum):
    NEXT = "next"
    PREV = "prev"


class Duration(BaseModel):
    """Non-negative whole-second duration with h/m/s decomposition."""

    model_config = ConfigDict(frozen=True)

    total_seconds: int = Field(default=0, ge=0)

    @classmethod
    def from_hms(cls, hours: int = 0, minutes: int = 0, seconds: int = 0) -> "Duration":
        total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
        return cls(total_seconds=max(0, total))

    @property
    def hours(self) -> int:
        return self.total_seconds // 3600

    @property
    def minutes(self) -> int:
        return (self.total_seconds % 3600) // 60

    @property
    def seconds(self) -> int:
        return self.total_seconds % 60

    @property
    def hms(self) -> tuple[int, int, int]:
        return self.hours, self.minutes, self.seconds

    @property
    def is_zero(self) -> bool:
        return self.total_seconds == 0

    def plus(self, seconds: int) -> "Duration":
        return Duration(total_seconds=self.total_seconds + seconds)

    def minus(self, seconds: int) -> "Duration":
        """Subtract *seconds*, clamping at zero."""
        return Duration(total_seconds=max(0, self.total_seconds - seconds))

    def format(self) -> str:
        """``HH:MM:SS`` when there are hours, else ``MM:SS``."""
        if self.hours > 0:
            return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"
        return f"{self.minutes:02d}:{self.seconds:02d}"


class TimerState(BaseModel):
    """Immutable snapshot of the timer engine, published to observers."""

    model_config = ConfigDict(frozen=True)

    phase: TimerPhase = TimerPhase.IDLE
    mode: TimerMode = TimerMode.COUNTDOWN
    remaining: Duration = Field(default_factory=Duration)
    blink_remaining: int | None = Field(
        default=None, description="Seconds left in the post-completion blink window"
    )
    hidden: bool = False
    manual_override: Duration | None = None

    @property
    def is_blinking(self) -> bool:
        return self.phase is TimerPhase.COMPLETE


class ImageRecord(BaseModel):
    """One displayable photo.  Replaced wholesale on every list refresh."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    name: str = ""
    last_modified: int | None = Field(default=None, alias="lastModified")

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.url.rsplit("/", 1)[-1]


class SlideshowState(BaseModel):
    """Immutable snapshot of the slideshow engine."""

    model_config = ConfigDict(frozen=True)

    current_index: int = Field(default=0, ge=0)
    image_count: int = Field(default=0, ge=0)
    order: SlideshowOrder = SlideshowOrder.SEQUENTIAL
    countdown_remaining: Duration = Field(default_factory=Duration)
    is_transitioning: bool = False
    pending_index: int | None = None
    direction: Direction = Direction.NEXT
