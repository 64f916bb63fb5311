"""Main page layout — full-screen photo frame.

Provides the ``@ui.page('/')`` route with:
* Full-bleed current image (object-fit from ``image_display_mode``)
* Clock and date overlay
* Timer overlay (countdown / chronometer, blinking when complete)
* Next-image countdown and ``n / total`` counter
* Weather widget (with an optional time-to-next-refresh line)
* Prev / next / timer controls

The page is a pure observer: engine state arrives over the event bus and
button clicks call engine operations.  Nothing here owns a tick source;
the only ``ui.timer`` drives the wall clock.
"""

from __future__ import annotations

import logging as _logging
from datetime import datetime

from nicegui import ui

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.models.event import Event
from photoframe.core.models.settings import DateDisplaySettings, Settings, TimeDisplaySettings
from photoframe.core.models.state import Duration, TimerPhase
from photoframe.core.system_manager import FrameSystem

_log = _logging.getLogger(__name__)

_OBJECT_FIT = {"original": "none", "adjust": "cover", "fit": "contain"}

_POSITION_STYLE = {
    "top-left": "top: 16px; left: 16px;",
    "top-center": "top: 16px; left: 50%; transform: translateX(-50%);",
    "top-right": "top: 16px; right: 16px;",
    "center-left": "top: 50%; left: 16px; transform: translateY(-50%);",
    "center": "top: 50%; left: 50%; transform: translate(-50%, -50%);",
    "center-right": "top: 50%; right: 16px; transform: translateY(-50%);",
    "bottom-left": "bottom: 16px; left: 16px;",
    "bottom-center": "bottom: 16px; left: 50%; transform: translateX(-50%);",
    "bottom-right": "bottom: 16px; right: 16px;",
}

# size-1 .. size-10
_FONT_SIZES = {f"size-{i}": f"{0.8 + 0.6 * i:.1f}rem" for i in range(1, 11)}


def format_clock(now: datetime, settings: TimeDisplaySettings) -> str:
    if settings.format_24h:
        pattern = "%H:%M:%S" if settings.show_seconds else "%H:%M"
        return now.strftime(pattern)
    pattern = "%I:%M:%S %p" if settings.show_seconds else "%I:%M %p"
    return now.strftime(pattern).lstrip("0")


def format_date(now: datetime, settings: DateDisplaySettings) -> str:
    """Render *now* with a ``DD/MM/YYYY``-style token pattern."""
    return (
        settings.format.replace("YYYY", f"{now.year:04d}")
        .replace("MM", f"{now.month:02d}")
        .replace("DD", f"{now.day:02d}")
    )


def format_refresh_countdown(seconds: int | None) -> str:
    if seconds is None:
        return ""
    if seconds == 0:
        return "updating…"
    return f"next update in {Duration(total_seconds=seconds).format()}"


def overlay_style(position: str, size: str = "size-2") -> str:
    anchor = _POSITION_STYLE.get(position, _POSITION_STYLE["center"])
    font = _FONT_SIZES.get(size, _FONT_SIZES["size-2"])
    return (
        f"position: absolute; {anchor} font-size: {font}; color: #ffffff; "
        "text-shadow: 0 0 6px #000000; z-index: 2;"
    )


class FrameLayout:
    """Builds the frame page and keeps it in sync with the engines.

    Args:
        system: The running :class:`FrameSystem`.
        event_bus: The global event bus for subscribing to engine updates.
    """

    def __init__(self, system: FrameSystem, event_bus: EventBus) -> None:
        self._system = system
        self._bus = event_bus

        # UI elements (bound after page renders)
        self._img: ui.image | None = None
        self._lbl_clock: ui.label | None = None
        self._lbl_date: ui.label | None = None
        self._lbl_timer: ui.label | None = None
        self._lbl_countdown: ui.label | None = None
        self._lbl_counter: ui.label | None = None
        self._lbl_weather: ui.label | None = None
        self._weather_icon: ui.image | None = None
        self._lbl_weather_refresh: ui.label | None = None

    def setup_page(self) -> None:
        """Register the ``@ui.page('/')`` route."""

        @ui.page("/")
        def index():
            self._build_page()

    def _build_page(self) -> None:
        settings = self._system.store.settings
        if settings.theme == "light":
            ui.dark_mode().disable()
        else:
            ui.dark_mode().enable()
        ui.query("body").style("background: #000000; margin: 0; padding: 0; overflow: hidden;")

        with ui.element("div").style(
            "position: relative; width: 100vw; height: 100vh; overflow: hidden;"
        ):
            self._build_image(settings)
            self._build_time_overlays(settings)
            self._build_slideshow_overlays(settings)
            self._build_weather(settings)
            self._build_controls(settings)

        sub_ids = [
            self._bus.subscribe(events.SLIDESHOW_IMAGE_CHANGED, self._on_image_changed),
            self._bus.subscribe(events.SLIDESHOW_STATE_CHANGED, self._on_slideshow_state),
            self._bus.subscribe(events.TIMER_STATE_CHANGED, self._on_timer_state),
            self._bus.subscribe(events.WEATHER_UPDATED, self._on_weather_updated),
        ]
        ui.context.client.on_disconnect(lambda: self._unsubscribe(sub_ids))

        ui.timer(1.0, self._update_clock)
        ui.keyboard(on_key=self._on_key)

    # ------------------------------------------------------------------
    # Build sections
    # ------------------------------------------------------------------

    def _build_image(self, settings: Settings) -> None:
        image = self._system.slideshow.current_image()
        fit = _OBJECT_FIT.get(settings.image_display_mode, "cover")
        self._img = ui.image(image.url if image else "").style(
            f"width: 100%; height: 100%; object-fit: {fit}; transition: opacity 0.3s;"
        ).props(f'fit={fit} no-spinner')

    def _build_time_overlays(self, settings: Settings) -> None:
        now = datetime.now()
        td = settings.time_display
        if td.show:
            self._lbl_clock = ui.label(format_clock(now, td)).style(overlay_style(td.position, td.size))
        dd = settings.date_display
        if dd.show:
            style = overlay_style(dd.position, dd.size)
            if dd.position == td.position and td.show:
                style += " margin-top: 3em;"
            self._lbl_date = ui.label(format_date(now, dd)).style(style)

        timer = td.timer
        font = timer.countdown_font_size if timer.type.value == "countdown" else timer.chronometer_font_size
        self._lbl_timer = ui.label(self._system.timer.remaining.format()).style(
            overlay_style("top-center", font) + " font-family: 'Courier New', monospace;"
        )
        self._lbl_timer.set_visibility(timer.enabled)

    def _build_slideshow_overlays(self, settings: Settings) -> None:
        state = self._system.slideshow.state
        self._lbl_countdown = ui.label(state.countdown_remaining.format()).style(
            overlay_style(settings.countdown_position, "size-1")
        )
        self._lbl_countdown.set_visibility(settings.show_countdown)
        self._lbl_counter = ui.label(self._format_counter(state.current_index, state.image_count)).style(
            overlay_style(settings.image_counter_position, "size-1")
        )
        self._lbl_counter.set_visibility(settings.show_image_counter)

    def _build_weather(self, settings: Settings) -> None:
        ws = settings.weather
        with ui.row().classes("items-center").style(overlay_style(ws.position, ws.size) + " gap: 4px;") as row:
            self._weather_icon = ui.image("").style("width: 48px; height: 48px;")
            self._lbl_weather = ui.label("")
            self._lbl_weather_refresh = ui.label("").style("font-size: 0.6em; opacity: 0.7;")
        self._lbl_weather_refresh.set_visibility(ws.show_countdown)
        row.set_visibility(ws.show)
        self._render_weather()

    def _build_controls(self, settings: Settings) -> None:
        with ui.row().style(overlay_style(settings.ui_controls_position) + " gap: 4px; opacity: 0.6;"):
            ui.button(icon="chevron_left", on_click=lambda: self._system.slideshow.previous()).props("flat round color=white")
            ui.button(icon="chevron_right", on_click=lambda: self._system.slideshow.next()).props("flat round color=white")
            if settings.timer.enabled:
                ui.button(icon="timer", on_click=lambda: self._system.timer.toggle()).props("flat round color=white")
                ui.button(icon="restart_alt", on_click=lambda: self._system.timer.reset()).props("flat round color=white")
            ui.button(icon="settings", on_click=lambda: ui.navigate.to("/settings")).props("flat round color=white")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_counter(index: int, count: int) -> str:
        return f"{index + 1} / {count}" if count else "0 / 0"

    def _update_clock(self) -> None:
        settings = self._system.store.settings
        now = datetime.now()
        try:
            if self._lbl_clock:
                self._lbl_clock.text = format_clock(now, settings.time_display)
            if self._lbl_date:
                self._lbl_date.text = format_date(now, settings.date_display)
            if self._lbl_weather_refresh and settings.weather.show_countdown:
                self._lbl_weather_refresh.text = format_refresh_countdown(self._system.weather_refresh_in())
        except RuntimeError:
            _log.debug("clock label client gone, ignoring update")

    def _render_weather(self) -> None:
        report = self._system.weather_report
        if report is None or self._lbl_weather is None:
            return
        unit = "°C" if self._system.store.weather_settings.unit == "metric" else "°F"
        temp = report.temperature
        text = f"{temp:.0f}{unit} {report.description}" if temp is not None else report.description
        if report.error:
            text += f" ({report.error})"
        try:
            self._lbl_weather.text = text
            if self._weather_icon is not None:
                self._weather_icon.set_source(report.icon or "")
        except RuntimeError:
            _log.debug("weather widget client gone, ignoring update")

    def _on_key(self, e) -> None:
        if not e.action.keydown:
            return
        if e.key.arrow_right:
            self._system.slideshow.next()
        elif e.key.arrow_left:
            self._system.slideshow.previous()
        elif e.key == " " and self._system.timer.enabled:
            self._system.timer.toggle()

    def _unsubscribe(self, sub_ids: list[str]) -> None:
        for sub_id in sub_ids:
            self._bus.unsubscribe(sub_id)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def _on_image_changed(self, event: Event) -> None:
        url = event.payload.get("url")
        if self._img and url:
            try:
                self._img.set_source(url)
            except RuntimeError:
                _log.debug("image client gone, ignoring update")
        if self._lbl_counter:
            try:
                self._lbl_counter.text = self._format_counter(
                    event.payload.get("index", 0), event.payload.get("count", 0)
                )
            except RuntimeError:
                _log.debug("counter label client gone, ignoring update")

    async def _on_slideshow_state(self, event: Event) -> None:
        remaining = Duration.model_validate(event.payload.get("countdown_remaining", {}))
        if self._lbl_countdown:
            try:
                self._lbl_countdown.text = remaining.format()
            except RuntimeError:
                _log.debug("countdown label client gone, ignoring update")

    async def _on_timer_state(self, event: Event) -> None:
        """Render the timer snapshot.

        While the completed countdown is blinking, odd ticks hide the label.
        """
        if not self._lbl_timer:
            return
        payload = event.payload
        remaining = Duration.model_validate(payload.get("remaining", {}))
        blink = payload.get("blink_remaining")
        visible = self._system.timer.enabled and not payload.get("hidden", False)
        if payload.get("phase") == TimerPhase.COMPLETE.value and blink is not None:
            visible = visible and blink % 2 == 0
        try:
            self._lbl_timer.text = remaining.format()
            self._lbl_timer.set_visibility(visible)
        except RuntimeError:
            _log.debug("timer label client gone, ignoring update")

    async def _on_weather_updated(self, event: Event) -> None:
        self._render_weather()
