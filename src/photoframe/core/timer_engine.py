"""Countdown / chronometer state machine.

Phases::

    IDLE ──start──▶ RUNNING ──pause──▶ PAUSED ──start──▶ RUNNING
                       │
                       └─(countdown reaches 0)─▶ COMPLETE ─(blink window spent)─▶ IDLE (hidden)

The engine owns exactly one :class:`TickSource`.  It is running if and
only if the phase is RUNNING or COMPLETE, so views never start or stop
timers themselves; they call the operations below and observe
``timer.state.changed`` events.

A countdown duration set by hand (:meth:`TimerEngine.set_duration_manually`)
sticks: later changes to the configured duration are recorded but do not
touch the displayed value until :meth:`TimerEngine.reset` clears the
override.
"""

from __future__ import annotations

import logging

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.interfaces.timing import TickSource
from photoframe.core.models.settings import TimerSettings
from photoframe.core.models.state import Duration, TimerMode, TimerPhase, TimerState
from photoframe.log_config.logger import ContextualLogger

_log = logging.getLogger(__name__)


class TimerEngine:
    """Drives the overlay timer from one-second ticks.

    Args:
        tick_source: Heartbeat owned by this engine.
        settings: Initial timer settings; defaults to :class:`TimerSettings`.
        event_bus: Optional bus that receives a snapshot after every change.
    """

    def __init__(
        self,
        tick_source: TickSource,
        settings: TimerSettings | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        settings = settings or TimerSettings()
        self._ticks = tick_source
        self._bus = event_bus
        self._log = ContextualLogger(_log, engine="timer")

        self._enabled = settings.enabled
        self._mode = settings.type
        self._configured = settings.duration
        self._blink_duration = settings.timeout_blink_duration

        self._phase = TimerPhase.IDLE
        self._manual: Duration | None = None
        self._remaining = self._initial_value()
        self._blink_remaining: int | None = None
        self._hidden = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return TimerState(
            phase=self._phase,
            mode=self._mode,
            remaining=self._remaining,
            blink_remaining=self._blink_remaining,
            hidden=self._hidden,
            manual_override=self._manual,
        )

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining(self) -> Duration:
        return self._remaining

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_ticking(self) -> bool:
        return self._ticks.is_running

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start from IDLE, resume from PAUSED, restart from COMPLETE."""
        if self._phase is TimerPhase.RUNNING:
            return

        if self._phase is TimerPhase.PAUSED:
            self._phase = TimerPhase.RUNNING
            self._ticks.start(self.tick)
            self._log.info("Resumed at %s", self._remaining.format())
            self._publish()
            return

        initial = self._initial_value()
        if self._mode is TimerMode.COUNTDOWN and initial.is_zero:
            self._log.warning("Countdown duration is zero; not starting")
            return

        self._remaining = initial
        self._blink_remaining = None
        self._hidden = False
        self._phase = TimerPhase.RUNNING
        self._ticks.start(self.tick)
        self._log.info("Started %s at %s", self._mode.value, initial.format())
        self._publish()

    def pause(self) -> None:
        """Hold the current value.  Only meaningful while RUNNING."""
        if self._phase is not TimerPhase.RUNNING:
            return
        self._ticks.stop()
        self._phase = TimerPhase.PAUSED
        self._log.info("Paused at %s", self._remaining.format())
        self._publish()

    def toggle(self) -> None:
        if self._phase is TimerPhase.RUNNING:
            self.pause()
        else:
            self.start()

    def tick(self) -> None:
        """Advance one second.  Called by the tick source."""
        if self._phase is TimerPhase.RUNNING:
            if self._mode is TimerMode.CHRONOMETER:
                self._remaining = self._remaining.plus(1)
            else:
                self._remaining = self._remaining.minus(1)
                if self._remaining.is_zero:
                    self._complete()
                    return
            self._publish()
        elif self._phase is TimerPhase.COMPLETE:
            assert self._blink_remaining is not None
            self._blink_remaining -= 1
            if self._blink_remaining <= 0:
                self._end_blink()
            else:
                self._publish()

    def reset(self) -> None:
        """Back to IDLE with the configured value; clears any manual override."""
        self._manual = None
        self._go_idle()
        self._log.info("Reset to %s", self._remaining.format())
        self._publish()

    def set_duration_manually(self, hours: int, minutes: int, seconds: int) -> None:
        """Override the configured countdown duration until the next reset."""
        duration = Duration.from_hms(hours, minutes, seconds)
        self._manual = duration
        if self._phase is not TimerPhase.COMPLETE:
            self._remaining = duration
        self._hidden = False
        self._log.info("Duration set manually to %s", duration.format())
        self._publish()

    def apply_settings(self, settings: TimerSettings) -> None:
        """React to a settings change.

        Disabling the feature resets the timer and stops its tick source.
        A mode change while active returns to IDLE.  A new configured
        duration is applied to an IDLE timer only when there is no manual
        override.
        """
        was_enabled = self._enabled
        mode_changed = settings.type is not self._mode

        self._enabled = settings.enabled
        self._mode = settings.type
        self._configured = settings.duration
        self._blink_duration = settings.timeout_blink_duration

        if was_enabled and not settings.enabled:
            self._log.info("Timer disabled")
            self.reset()
            return

        if mode_changed and self._phase is not TimerPhase.IDLE:
            self._log.info("Mode changed to %s while active; stopping", self._mode.value)
            self._go_idle()
        elif self._phase is TimerPhase.IDLE and (self._manual is None or mode_changed):
            self._remaining = self._initial_value()
        self._publish()

    def shutdown(self) -> None:
        """Cancel the tick source; a running timer is left PAUSED."""
        self._ticks.stop()
        if self._phase is TimerPhase.RUNNING:
            self._phase = TimerPhase.PAUSED
        elif self._phase is TimerPhase.COMPLETE:
            self._phase = TimerPhase.IDLE
            self._blink_remaining = None
            self._hidden = True
        self._log.debug("Shut down in phase %s", self._phase.value)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _initial_value(self) -> Duration:
        if self._mode is TimerMode.CHRONOMETER:
            return Duration()
        return self._manual if self._manual is not None else self._configured

    def _complete(self) -> None:
        self._phase = TimerPhase.COMPLETE
        self._remaining = Duration()
        self._log.info("Countdown complete")
        if self._bus is not None:
            self._bus.publish_nowait(events.TIMER_COMPLETED, {}, source="timer")
        if self._blink_duration <= 0:
            self._end_blink()
            return
        self._blink_remaining = self._blink_duration
        self._publish()

    def _end_blink(self) -> None:
        self._ticks.stop()
        self._phase = TimerPhase.IDLE
        self._blink_remaining = None
        self._hidden = True
        self._remaining = Duration()
        self._publish()

    def _go_idle(self) -> None:
        self._ticks.stop()
        self._phase = TimerPhase.IDLE
        self._blink_remaining = None
        self._hidden = False
        self._remaining = self._initial_value()

    def _publish(self) -> None:
        if self._bus is None:
            return
        self._bus.publish_nowait(
            events.TIMER_STATE_CHANGED,
            self.state.model_dump(mode="json"),
            source="timer",
        )
