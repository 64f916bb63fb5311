"""Unit tests for the frame page helpers and event handlers.

NiceGUI itself is not exercised; the handlers are driven with stand-in
elements.  An element whose client has been torn down raises
``RuntimeError`` on every write, and the handlers must swallow that so
the event bus does not unsubscribe them.
"""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.models.event import Event
from photoframe.core.models.settings import DateDisplaySettings, Settings, TimeDisplaySettings
from photoframe.core.models.state import Duration, SlideshowState, TimerPhase, TimerState
from photoframe.ui.layout import (
    FrameLayout,
    format_clock,
    format_date,
    format_refresh_countdown,
    overlay_style,
)


class _BrokenTextElement:
    """Mimics a NiceGUI element whose client has already been deleted."""

    @property
    def text(self):
        return ""

    @text.setter
    def text(self, t):
        raise RuntimeError("The client this element belongs to has been deleted.")

    def set_visibility(self, visible):
        raise RuntimeError("The client this element belongs to has been deleted.")

    def set_source(self, source):
        raise RuntimeError("The client this element belongs to has been deleted.")


class _Label:
    def __init__(self) -> None:
        self.text = ""
        self.visible = True

    def set_visibility(self, visible: bool) -> None:
        self.visible = visible


def _layout(timer_enabled: bool = True) -> FrameLayout:
    system = SimpleNamespace(timer=SimpleNamespace(enabled=timer_enabled))
    return FrameLayout(system=system, event_bus=MagicMock())


def _timer_event(**kw) -> Event:
    state = TimerState(**kw)
    return Event(event_type=events.TIMER_STATE_CHANGED, payload=state.model_dump(mode="json"))


class TestFormatting:
    def test_clock_24h(self):
        now = datetime(2024, 5, 1, 7, 5, 9)
        assert format_clock(now, TimeDisplaySettings()) == "07:05"
        assert format_clock(now, TimeDisplaySettings(show_seconds=True)) == "07:05:09"

    def test_clock_12h(self):
        now = datetime(2024, 5, 1, 19, 5, 0)
        assert format_clock(now, TimeDisplaySettings(format_24h=False)) == "7:05 PM"

    @pytest.mark.parametrize(
        "fmt, expected",
        [("DD/MM/YYYY", "01/05/2024"), ("MM/DD/YYYY", "05/01/2024"), ("YYYY-MM-DD", "2024-05-01")],
    )
    def test_date(self, fmt, expected):
        assert format_date(datetime(2024, 5, 1), DateDisplaySettings(format=fmt)) == expected

    def test_overlay_style_unknown_position_is_centered(self):
        assert "translate(-50%, -50%)" in overlay_style("nowhere")

    def test_refresh_countdown(self):
        assert format_refresh_countdown(None) == ""
        assert format_refresh_countdown(0) == "updating…"
        assert format_refresh_countdown(125) == "next update in 02:05"


class TestTimerHandler:
    async def test_renders_remaining(self):
        layout = _layout()
        layout._lbl_timer = _Label()
        await layout._on_timer_state(_timer_event(phase=TimerPhase.RUNNING, remaining=Duration(total_seconds=75)))
        assert layout._lbl_timer.text == "01:15"
        assert layout._lbl_timer.visible

    async def test_hidden_after_blink_window(self):
        layout = _layout()
        layout._lbl_timer = _Label()
        await layout._on_timer_state(_timer_event(phase=TimerPhase.IDLE, hidden=True))
        assert not layout._lbl_timer.visible

    async def test_blinks_while_complete(self):
        layout = _layout()
        layout._lbl_timer = _Label()
        seen = []
        for blink in (4, 3, 2, 1):
            await layout._on_timer_state(_timer_event(phase=TimerPhase.COMPLETE, blink_remaining=blink))
            seen.append(layout._lbl_timer.visible)
        assert seen == [True, False, True, False]

    async def test_disabled_timer_stays_hidden(self):
        layout = _layout(timer_enabled=False)
        layout._lbl_timer = _Label()
        await layout._on_timer_state(_timer_event(phase=TimerPhase.RUNNING))
        assert not layout._lbl_timer.visible

    async def test_ignores_runtime_error(self):
        layout = _layout()
        layout._lbl_timer = _BrokenTextElement()
        await layout._on_timer_state(_timer_event(phase=TimerPhase.RUNNING))


class TestSlideshowHandlers:
    async def test_image_changed_updates_counter(self):
        layout = _layout()
        layout._img = MagicMock()
        layout._lbl_counter = _Label()
        ev = Event(
            event_type=events.SLIDESHOW_IMAGE_CHANGED,
            payload={"index": 1, "count": 3, "url": "/photos/b.jpg"},
        )
        await layout._on_image_changed(ev)
        layout._img.set_source.assert_called_once_with("/photos/b.jpg")
        assert layout._lbl_counter.text == "2 / 3"

    async def test_countdown_label(self):
        layout = _layout()
        layout._lbl_countdown = _Label()
        ev = Event(
            event_type=events.SLIDESHOW_STATE_CHANGED,
            payload={"countdown_remaining": {"total_seconds": 7}},
        )
        await layout._on_slideshow_state(ev)
        assert layout._lbl_countdown.text == "00:07"

    async def test_handlers_ignore_runtime_error(self):
        layout = _layout()
        layout._img = _BrokenTextElement()
        layout._lbl_counter = _BrokenTextElement()
        layout._lbl_countdown = _BrokenTextElement()
        await layout._on_image_changed(
            Event(event_type=events.SLIDESHOW_IMAGE_CHANGED, payload={"index": 0, "count": 1, "url": "/x.jpg"})
        )
        await layout._on_slideshow_state(
            Event(event_type=events.SLIDESHOW_STATE_CHANGED, payload={"countdown_remaining": {"total_seconds": 1}})
        )

    def test_format_counter_empty(self):
        assert FrameLayout._format_counter(0, 0) == "0 / 0"


_PAGE_EVENTS = (
    events.SLIDESHOW_IMAGE_CHANGED,
    events.SLIDESHOW_STATE_CHANGED,
    events.TIMER_STATE_CHANGED,
    events.WEATHER_UPDATED,
)


class TestPageSubscriptions:
    """Each page build owns its subscriptions until its client disconnects."""

    def _system(self) -> SimpleNamespace:
        settings = Settings()
        return SimpleNamespace(
            store=SimpleNamespace(settings=settings, weather_settings=settings.weather),
            slideshow=SimpleNamespace(current_image=lambda: None, state=SlideshowState()),
            timer=SimpleNamespace(enabled=False, remaining=Duration()),
            weather_report=None,
            weather_refresh_in=lambda: None,
        )

    def _counts(self, bus: EventBus) -> list[int]:
        return [bus.subscriber_count(t) for t in _PAGE_EVENTS]

    def test_disconnect_only_drops_own_subscriptions(self, monkeypatch):
        fake_ui = MagicMock()
        monkeypatch.setattr("photoframe.ui.layout.ui", fake_ui)
        bus = EventBus()
        layout = FrameLayout(system=self._system(), event_bus=bus)

        layout._build_page()
        layout._build_page()
        assert self._counts(bus) == [2, 2, 2, 2]

        first, second = [c.args[0] for c in fake_ui.context.client.on_disconnect.call_args_list]
        first()
        assert self._counts(bus) == [1, 1, 1, 1]
        # repeated disconnect callbacks are harmless
        first()
        assert self._counts(bus) == [1, 1, 1, 1]

        second()
        assert self._counts(bus) == [0, 0, 0, 0]
