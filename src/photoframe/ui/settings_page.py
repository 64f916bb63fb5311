"""Settings page — NiceGUI ``/settings`` route.

Provides:
* Slideshow (rotation time, order, display mode, overlays)
* Clock & date
* Timer (mode, configured duration, blink window, manual override)
* Weather (location or coordinates, units, forecast mode)
* Save / reset to defaults
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from nicegui import ui
from pydantic import ValidationError

from photoframe.core.models.settings import MAX_ROTATION_SECONDS, MIN_ROTATION_SECONDS, POSITIONS

if TYPE_CHECKING:
    from photoframe.core.system_manager import FrameSystem

_log = logging.getLogger(__name__)

_LANGUAGES = {"en": "English", "es": "Español", "fr": "Français", "de": "Deutsch", "it": "Italiano", "zh": "中文", "ja": "日本語"}

# cleared means "use the location name"
_ZERO_WHEN_CLEARED = ("weather.coordinates.lat", "weather.coordinates.lon")


def build_partial(values: dict[str, Any]) -> dict[str, Any]:
    """Turn the flat form values into a nested settings update.

    Keys with a dot (``"weather.location"``) are nested; ``None`` values
    (cleared number inputs) are dropped, except for the weather
    coordinates, where a cleared input becomes 0.
    """
    partial: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            if key not in _ZERO_WHEN_CLEARED:
                continue
            value = 0
        node = partial
        *parents, leaf = key.split(".")
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = int(value) if isinstance(value, float) and value.is_integer() else value
    return partial


class SettingsPage:
    """Constructs the ``/settings`` route.

    Args:
        system: The running frame system; edits go through its store.
    """

    def __init__(self, system: "FrameSystem") -> None:
        self._system = system

    def setup_page(self) -> None:
        @ui.page("/settings")
        def settings_index():
            self._build_page()

    # ------------------------------------------------------------------
    # Page construction
    # ------------------------------------------------------------------

    def _build_page(self) -> None:
        ui.dark_mode().enable()
        ui.query("body").style("background: #1a1a1a; margin: 0; padding: 0;")
        s = self._system.store.settings
        values: dict[str, Any] = {
            "language": s.language,
            "theme": s.theme,
            "image_display_mode": s.image_display_mode,
            "rotation_time": s.rotation_time,
            "slideshow_order": s.slideshow_order.value,
            "show_countdown": s.show_countdown,
            "show_image_counter": s.show_image_counter,
            "countdown_position": s.countdown_position,
            "image_counter_position": s.image_counter_position,
            "time_display.show": s.time_display.show,
            "time_display.format_24h": s.time_display.format_24h,
            "time_display.show_seconds": s.time_display.show_seconds,
            "time_display.position": s.time_display.position,
            "date_display.show": s.date_display.show,
            "date_display.format": s.date_display.format,
            "time_display.timer.enabled": s.timer.enabled,
            "time_display.timer.type": s.timer.type.value,
            "time_display.timer.countdown_hours": s.timer.countdown_hours,
            "time_display.timer.countdown_minutes": s.timer.countdown_minutes,
            "time_display.timer.countdown_seconds": s.timer.countdown_seconds,
            "time_display.timer.timeout_blink_duration": s.timer.timeout_blink_duration,
            "weather.show": s.weather.show,
            "weather.location": s.weather.location,
            "weather.coordinates.lat": s.weather.coordinates.lat,
            "weather.coordinates.lon": s.weather.coordinates.lon,
            "weather.unit": s.weather.unit,
            "weather.forecast_mode": s.weather.forecast_mode,
            "weather.refresh_interval": s.weather.refresh_interval,
            "weather.show_air_quality": s.weather.show_air_quality,
            "weather.show_countdown": s.weather.show_countdown,
        }

        with ui.column().classes("w-full items-center").style(
            "min-height: 100vh; padding: 16px; gap: 16px; max-width: 960px; margin: auto;"
        ):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("PhotoFrame Settings").style(
                    "font-size: 24px; font-weight: bold; color: #ffffff;"
                )
                ui.link("← Back to frame", "/").style("color: #00aaff;")

            self._build_slideshow_card(values)
            self._build_time_card(values)
            self._build_timer_card(values)
            self._build_weather_card(values)

            with ui.row().classes("gap-2"):
                ui.button("Save", icon="save", on_click=lambda: self._save(values)).props("color=primary")
                ui.button("Reset to defaults", icon="restart_alt", on_click=self._reset).props("flat color=warning")

    def _card_title(self, text: str) -> None:
        ui.label(text).style("font-size: 18px; font-weight: bold; color: #ffffff; margin-bottom: 8px;")

    def _build_slideshow_card(self, values: dict[str, Any]) -> None:
        with ui.card().classes("w-full").style("background: #2a2a2a;"):
            self._card_title("Slideshow")
            ui.number(
                f"Seconds per image ({MIN_ROTATION_SECONDS}-{MAX_ROTATION_SECONDS})",
                min=MIN_ROTATION_SECONDS,
                max=MAX_ROTATION_SECONDS,
                step=1,
            ).bind_value(values, "rotation_time")
            ui.select({"sequential": "Sequential", "random": "Random"}, label="Order").bind_value(values, "slideshow_order")
            ui.select({"original": "Original", "adjust": "Fill", "fit": "Fit"}, label="Image display").bind_value(values, "image_display_mode")
            ui.select(["dark", "light", "auto"], label="Theme").bind_value(values, "theme")
            ui.select(_LANGUAGES, label="Language").bind_value(values, "language")
            ui.switch("Show next-image countdown").bind_value(values, "show_countdown")
            ui.select(list(POSITIONS), label="Countdown position").bind_value(values, "countdown_position")
            ui.switch("Show image counter").bind_value(values, "show_image_counter")
            ui.select(list(POSITIONS), label="Counter position").bind_value(values, "image_counter_position")

    def _build_time_card(self, values: dict[str, Any]) -> None:
        with ui.card().classes("w-full").style("background: #2a2a2a;"):
            self._card_title("Clock & Date")
            ui.switch("Show clock").bind_value(values, "time_display.show")
            ui.switch("24-hour format").bind_value(values, "time_display.format_24h")
            ui.switch("Show seconds").bind_value(values, "time_display.show_seconds")
            ui.select(list(POSITIONS), label="Clock position").bind_value(values, "time_display.position")
            ui.switch("Show date").bind_value(values, "date_display.show")
            ui.select(["DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"], label="Date format").bind_value(values, "date_display.format")

    def _build_timer_card(self, values: dict[str, Any]) -> None:
        timer = self._system.timer
        with ui.card().classes("w-full").style("background: #2a2a2a;"):
            self._card_title("Timer")
            ui.switch("Enabled").bind_value(values, "time_display.timer.enabled")
            ui.select({"countdown": "Countdown", "chronometer": "Chronometer"}, label="Mode").bind_value(values, "time_display.timer.type")
            with ui.row().classes("gap-2"):
                ui.number("Hours", min=0, step=1).bind_value(values, "time_display.timer.countdown_hours")
                ui.number("Minutes", min=0, max=59, step=1).bind_value(values, "time_display.timer.countdown_minutes")
                ui.number("Seconds", min=0, max=59, step=1).bind_value(values, "time_display.timer.countdown_seconds")
            ui.number("Blink after completion (s)", min=0, step=1).bind_value(values, "time_display.timer.timeout_blink_duration")

            ui.separator().style("background: #444444;")
            ui.label("Set the current countdown without changing the saved duration").style("color: #888888; font-size: 12px;")
            manual = {"h": 0, "m": 0, "s": 0}
            with ui.row().classes("gap-2 items-center"):
                ui.number("h", min=0, step=1).bind_value(manual, "h")
                ui.number("m", min=0, max=59, step=1).bind_value(manual, "m")
                ui.number("s", min=0, max=59, step=1).bind_value(manual, "s")
                ui.button(
                    "Apply",
                    on_click=lambda: timer.set_duration_manually(
                        int(manual["h"] or 0), int(manual["m"] or 0), int(manual["s"] or 0)
                    ),
                ).props("flat color=primary")
            with ui.row().classes("gap-2"):
                ui.button("Start / Pause", icon="play_arrow", on_click=timer.toggle).props("flat")
                ui.button("Reset", icon="restart_alt", on_click=timer.reset).props("flat")

    def _build_weather_card(self, values: dict[str, Any]) -> None:
        with ui.card().classes("w-full").style("background: #2a2a2a;"):
            self._card_title("Weather")
            ui.switch("Show weather").bind_value(values, "weather.show")
            ui.input("Location", placeholder="City, Country").bind_value(values, "weather.location")
            with ui.row().classes("gap-2 items-center"):
                ui.number("Latitude", min=-90, max=90, step=0.01).bind_value(values, "weather.coordinates.lat")
                ui.number("Longitude", min=-180, max=180, step=0.01).bind_value(values, "weather.coordinates.lon")
            ui.label("Leave the coordinates empty or 0 to look up the location by name").style("color: #888888; font-size: 12px;")
            ui.select({"metric": "°C", "imperial": "°F"}, label="Units").bind_value(values, "weather.unit")
            ui.select({"smart": "Smart", "today": "Today", "tomorrow": "Tomorrow"}, label="Forecast").bind_value(values, "weather.forecast_mode")
            ui.number("Refresh every (minutes)", min=1, step=1).bind_value(values, "weather.refresh_interval")
            ui.switch("Show air quality").bind_value(values, "weather.show_air_quality")
            ui.switch("Show time until next update").bind_value(values, "weather.show_countdown")
            ui.button("Refresh now", icon="refresh", on_click=self._refresh_weather).props("flat")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _save(self, values: dict[str, Any]) -> None:
        store = self._system.store
        try:
            store.update(build_partial(values))
        except ValidationError as exc:
            _log.warning("Rejected settings: %s", exc)
            ui.notify(f"Invalid settings: {exc.errors()[0]['msg']}", type="negative")
            return
        try:
            store.save()
        except OSError as exc:
            _log.error("Could not save settings: %s", exc)
            ui.notify(f"Could not save settings: {exc}", type="negative")
            return
        ui.notify("Settings saved", type="positive")

    def _reset(self) -> None:
        store = self._system.store
        store.reset_to_defaults()
        try:
            store.save()
        except OSError as exc:
            _log.error("Could not save settings: %s", exc)
            ui.notify(f"Could not save settings: {exc}", type="negative")
            return
        ui.notify("Settings reset to defaults")
        ui.navigate.reload()

    async def _refresh_weather(self) -> None:
        report = await self._system.refresh_weather(force=True)
        if report is None:
            ui.notify("Weather is not configured", type="warning")
        elif report.error:
            ui.notify(f"Weather: {report.error}", type="warning")
        else:
            ui.notify("Weather updated", type="positive")
