"""Slideshow rotation engine — which image is shown, and when to move on."""

from __future__ import annotations

import logging
import random as _random
from typing import Iterable

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.interfaces.timing import Cancellable, Scheduler, TickSource
from photoframe.core.models.settings import MIN_ROTATION_SECONDS, Settings
from photoframe.core.models.state import (
    Direction,
    Duration,
    ImageRecord,
    SlideshowOrder,
    SlideshowState,
)
from photoframe.log_config.logger import ContextualLogger

_log = logging.getLogger(__name__)


class SlideshowEngine:
    """Index arithmetic, per-image countdown and transition bookkeeping.

    A navigation request first marks the engine as transitioning and holds
    the target index; the index is committed by :meth:`complete_transition`
    after ``transition_delay`` seconds (scheduled on *scheduler*).  While a
    transition is in flight further requests are ignored.

    Args:
        tick_source: One-second heartbeat owned by this engine.
        scheduler: One-shot scheduler for the transition delay.
        rotation_interval: Seconds each image stays on screen.
        order: Sequential or random auto-advance.
        transition_delay: Seconds between request and committed index.
        event_bus: Optional bus receiving state snapshots.
        rng: Random source for random order; injectable for tests.
    """

    def __init__(
        self,
        tick_source: TickSource,
        scheduler: Scheduler,
        rotation_interval: int = MIN_ROTATION_SECONDS,
        order: SlideshowOrder = SlideshowOrder.SEQUENTIAL,
        transition_delay: float = 0.1,
        event_bus: EventBus | None = None,
        rng: _random.Random | None = None,
    ) -> None:
        if rotation_interval < 1:
            raise ValueError(f"rotation_interval must be >= 1, got {rotation_interval}")
        self._ticks = tick_source
        self._scheduler = scheduler
        self._rotation_interval = rotation_interval
        self._order = order
        self._transition_delay = transition_delay
        self._bus = event_bus
        self._rng = rng or _random.Random()
        self._log = ContextualLogger(_log, engine="slideshow")

        self._images: list[ImageRecord] = []
        self._index = 0
        self._countdown = rotation_interval
        self._transitioning = False
        self._pending: int | None = None
        self._direction = Direction.NEXT
        self._transition_handle: Cancellable | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SlideshowState:
        return SlideshowState(
            current_index=self._index,
            image_count=len(self._images),
            order=self._order,
            countdown_remaining=Duration(total_seconds=self._countdown),
            is_transitioning=self._transitioning,
            pending_index=self._pending,
            direction=self._direction,
        )

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def images(self) -> tuple[ImageRecord, ...]:
        return tuple(self._images)

    @property
    def is_transitioning(self) -> bool:
        return self._transitioning

    @property
    def is_running(self) -> bool:
        return self._ticks.is_running

    @property
    def rotation_interval(self) -> int:
        return self._rotation_interval

    def current_image(self) -> ImageRecord | None:
        if not self._images:
            return None
        return self._images[self._index]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin auto-advance.  Idempotent."""
        if self._ticks.is_running:
            return
        self._countdown = self._rotation_interval
        self._ticks.start(self.tick)
        self._log.info(
            "Started (%d images, every %ds, %s)",
            len(self._images),
            self._rotation_interval,
            self._order.value,
        )
        self._publish_state()

    def stop(self) -> None:
        """Cancel the tick source and any in-flight transition."""
        self._ticks.stop()
        self._cancel_transition()
        self._log.info("Stopped")

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_images(self, records: Iterable[ImageRecord]) -> None:
        """Replace the image list wholesale.

        An identical list is ignored.  An in-flight transition survives the
        swap as long as its target index still exists.
        """
        images = list(records)
        if images == self._images:
            return
        previous = self.current_image()
        self._images = images
        if self._pending is not None and (len(images) < 2 or self._pending >= len(images)):
            self._cancel_transition()
        if self._index >= len(self._images):
            self._index = 0
        self._log.debug("Image list replaced (%d images)", len(self._images))
        self._publish_state()
        if self.current_image() != previous:
            self._publish_image()

    def set_rotation_interval(self, seconds: int) -> None:
        if seconds < 1:
            raise ValueError(f"rotation interval must be >= 1, got {seconds}")
        if seconds == self._rotation_interval:
            return
        self._rotation_interval = seconds
        self._countdown = seconds
        self._log.info("Rotation interval now %ds", seconds)
        self._publish_state()

    def set_order(self, order: SlideshowOrder) -> None:
        self._order = order

    def apply_settings(self, settings: Settings) -> None:
        self.set_order(settings.slideshow_order)
        self.set_rotation_interval(settings.rotation_time)

    def advance(self, direction: Direction = Direction.NEXT, random: bool = False) -> bool:
        """Request a move to the next/previous (or a random) image.

        Returns ``False`` when ignored: fewer than two images, or a
        transition already in flight.
        """
        count = len(self._images)
        if count < 2 or self._transitioning:
            return False

        if random:
            target = (self._index + self._rng.randrange(1, count)) % count
        elif direction is Direction.NEXT:
            target = (self._index + 1) % count
        else:
            target = (self._index - 1 + count) % count

        self._transitioning = True
        self._pending = target
        self._direction = direction
        self._transition_handle = self._scheduler.call_later(
            self._transition_delay, self.complete_transition
        )
        self._publish_state()
        return True

    def next(self) -> bool:
        return self.advance(Direction.NEXT)

    def previous(self) -> bool:
        return self.advance(Direction.PREV)

    def complete_transition(self) -> None:
        """Commit the held target index."""
        if not self._transitioning or self._pending is None:
            return
        self._index = self._pending
        self._pending = None
        self._transitioning = False
        self._transition_handle = None
        self._publish_state()
        self._publish_image()

    def tick(self) -> None:
        """One second elapsed: count down and auto-advance when due."""
        if len(self._images) < 2:
            return
        self._countdown -= 1
        if self._countdown <= 0:
            self._countdown = self._rotation_interval
            self.advance(Direction.NEXT, random=self._order is SlideshowOrder.RANDOM)
        self._publish_state()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _cancel_transition(self) -> None:
        if self._transition_handle is not None:
            self._transition_handle.cancel()
            self._transition_handle = None
        self._transitioning = False
        self._pending = None

    def _publish_state(self) -> None:
        if self._bus is not None:
            self._bus.publish_nowait(
                events.SLIDESHOW_STATE_CHANGED,
                self.state.model_dump(mode="json"),
                source="slideshow",
            )

    def _publish_image(self) -> None:
        if self._bus is None:
            return
        image = self.current_image()
        self._bus.publish_nowait(
            events.SLIDESHOW_IMAGE_CHANGED,
            {
                "index": self._index,
                "count": len(self._images),
                "url": image.url if image else None,
                "name": image.display_name if image else None,
                "direction": self._direction.value,
            },
            source="slideshow",
        )
