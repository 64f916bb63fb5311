"""User settings — the flat configuration bag persisted as one JSON blob.

Python field names are snake_case; the persisted JSON uses the camelCase
keys of the browser-era ``photoframeSettings`` blob so exported files stay
interchangeable.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from photoframe.core.models.state import Duration, SlideshowOrder, TimerMode

MIN_ROTATION_SECONDS = 10
MAX_ROTATION_SECONDS = 7200

POSITIONS = (
    "top-left", "top-center", "top-right",
    "center-left", "center", "center-right",
    "bottom-left", "bottom-center", "bottom-right",
)


class _SettingsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Coordinates(_SettingsModel):
    lat: float = 43.7
    lon: float = 7.25

    @property
    def is_set(self) -> bool:
        return bool(self.lat) and bool(self.lon)


class WeatherSettings(_SettingsModel):
    show: bool = True
    location: str = "Nice, France"
    coordinates: Coordinates = Field(default_factory=Coordinates)
    forecast_mode: Literal["today", "tomorrow", "smart"] = "smart"
    position: str = "top-right"
    unit: Literal["metric", "imperial"] = "metric"
    size: str = "size-2"
    refresh_interval: int = Field(default=60, ge=1, description="Minutes between refreshes")
    show_countdown: bool = False
    show_air_quality: bool = False


class TimerSettings(_SettingsModel):
    enabled: bool = False
    type: TimerMode = TimerMode.COUNTDOWN
    countdown_hours: int = Field(default=0, ge=0)
    countdown_minutes: int = Field(default=5, ge=0, le=59)
    countdown_seconds: int = Field(default=0, ge=0, le=59)
    timeout_blink_duration: int = Field(default=10, ge=0)
    countdown_font_size: str = "size-4"
    chronometer_font_size: str = "size-4"

    @property
    def duration(self) -> Duration:
        return Duration.from_hms(
            self.countdown_hours, self.countdown_minutes, self.countdown_seconds
        )


class TimeDisplaySettings(_SettingsModel):
    show: bool = True
    format_24h: bool = Field(default=True, alias="format24h")
    show_seconds: bool = False
    position: str = "center"
    size: str = "size-8"
    timer: TimerSettings = Field(default_factory=TimerSettings)


class CalendarEvent(_SettingsModel):
    date: str = Field(description="ISO date, YYYY-MM-DD")
    title: str = ""
    color: str | None = None


class DateDisplaySettings(_SettingsModel):
    show: bool = True
    format: str = "DD/MM/YYYY"
    position: str = "center"
    size: str = "size-1"
    enable_calendar: bool = True
    first_day_of_week: int = Field(default=0, ge=0, le=6)
    calendar_events: list[CalendarEvent] = Field(default_factory=list)


class Settings(_SettingsModel):
    """Everything the settings page can change."""

    language: str = "en"
    theme: Literal["light", "dark", "auto"] = "dark"
    image_display_mode: Literal["original", "adjust", "fit"] = "adjust"
    show_image_counter: bool = True
    show_countdown: bool = True
    countdown_position: str = "bottom-left"
    image_counter_position: str = "bottom-right"
    ui_controls_position: str = "top-right"
    rotation_time: int = Field(default=MIN_ROTATION_SECONDS, description="Seconds per image")
    slideshow_order: SlideshowOrder = SlideshowOrder.SEQUENTIAL
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    time_display: TimeDisplaySettings = Field(default_factory=TimeDisplaySettings)
    date_display: DateDisplaySettings = Field(default_factory=DateDisplaySettings)

    @field_validator("rotation_time", mode="after")
    @classmethod
    def _clamp_rotation_time(cls, value: int) -> int:
        return max(MIN_ROTATION_SECONDS, min(MAX_ROTATION_SECONDS, value))

    @property
    def timer(self) -> TimerSettings:
        return self.time_display.timer

    def to_blob(self) -> dict:
        """JSON-ready dict using the persisted camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
