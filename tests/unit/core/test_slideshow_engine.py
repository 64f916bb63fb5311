"""Tests for SlideshowEngine — navigation, auto-advance, transitions."""

from __future__ import annotations

import asyncio
import random

import pytest

from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.models.event import Event
from photoframe.core.models.settings import Settings
from photoframe.core.models.state import Direction, ImageRecord, SlideshowOrder
from photoframe.core.slideshow_engine import SlideshowEngine
from photoframe.core.timing import ManualScheduler, ManualTickSource
from tests.helpers.runtime import run_seconds


def _records(n: int) -> list[ImageRecord]:
    return [ImageRecord(url=f"/photos/{i}.jpg", name=f"{i}.jpg") for i in range(n)]


@pytest.fixture
def ticks() -> ManualTickSource:
    return ManualTickSource()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


def _engine(ticks, scheduler, n: int = 3, interval: int = 10, **kw) -> SlideshowEngine:
    engine = SlideshowEngine(ticks, scheduler, rotation_interval=interval, **kw)
    engine.set_images(_records(n))
    return engine


class TestNavigation:
    def test_next_commits_after_transition(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        assert engine.next() is True
        assert engine.is_transitioning
        assert engine.current_index == 0
        assert engine.state.pending_index == 1
        scheduler.run_pending()
        assert engine.current_index == 1
        assert not engine.is_transitioning

    @pytest.mark.parametrize(
        "count, start", [(n, i) for n in (2, 3, 5) for i in range(n)]
    )
    def test_sequential_wraps_in_both_directions(self, ticks, scheduler, count, start):
        engine = _engine(ticks, scheduler, n=count)
        for _ in range(start):
            engine.next()
            scheduler.run_pending()
        assert engine.current_index == start

        engine.next()
        scheduler.run_pending()
        assert engine.current_index == (start + 1) % count

        engine.previous()
        scheduler.run_pending()
        engine.previous()
        scheduler.run_pending()
        assert engine.current_index == (start - 1 + count) % count

    def test_previous_wraps_from_zero(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.previous()
        scheduler.run_pending()
        assert engine.current_index == 2
        assert engine.state.direction is Direction.PREV

    def test_request_during_transition_is_ignored(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        assert engine.next() is True
        assert engine.next() is False
        assert engine.previous() is False
        assert scheduler.pending == 1
        scheduler.run_pending()
        assert engine.current_index == 1

    @pytest.mark.parametrize("count", [0, 1])
    def test_fewer_than_two_images_ignores_navigation(self, ticks, scheduler, count):
        engine = _engine(ticks, scheduler, n=count)
        assert engine.next() is False
        assert engine.previous() is False
        assert scheduler.pending == 0

    def test_random_never_picks_current(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=4, rng=random.Random(7))
        for _ in range(50):
            before = engine.current_index
            engine.advance(random=True)
            scheduler.run_pending()
            assert engine.current_index != before
            assert 0 <= engine.current_index < 4

    def test_random_with_two_images_alternates(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=2, rng=random.Random(1))
        seen = []
        for _ in range(4):
            engine.advance(random=True)
            scheduler.run_pending()
            seen.append(engine.current_index)
        assert seen == [1, 0, 1, 0]


class TestAutoAdvance:
    def test_advances_every_interval(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=3, interval=10)
        engine.start()
        run_seconds(ticks, scheduler, 9)
        assert engine.current_index == 0
        run_seconds(ticks, scheduler, 1)
        assert engine.current_index == 1

    def test_thirty_one_seconds_wraps_to_start(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=3, interval=10)
        changes: list[int] = []
        engine.start()
        for _ in range(31):
            ticks.fire()
            changes.append(scheduler.run_pending())
        assert sum(changes) == 3
        assert engine.current_index == 0

    def test_countdown_resets_after_advance(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, interval=10)
        engine.start()
        run_seconds(ticks, scheduler, 4)
        assert engine.state.countdown_remaining.total_seconds == 6
        run_seconds(ticks, scheduler, 6)
        assert engine.state.countdown_remaining.total_seconds == 10

    def test_single_image_never_advances(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=1)
        engine.start()
        run_seconds(ticks, scheduler, 100)
        assert engine.current_index == 0
        assert engine.state.countdown_remaining.total_seconds == 10

    def test_random_order_auto_advance(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=5, interval=10, order=SlideshowOrder.RANDOM, rng=random.Random(3))
        engine.start()
        previous = engine.current_index
        for _ in range(5):
            run_seconds(ticks, scheduler, 10)
            assert engine.current_index != previous
            previous = engine.current_index

    def test_start_is_idempotent(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.start()
        engine.start()
        assert ticks.start_calls == 1

    def test_stop_cancels_ticks_and_pending_transition(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.start()
        engine.next()
        engine.stop()
        assert not engine.is_running
        assert not engine.is_transitioning
        assert scheduler.run_pending() == 0
        assert engine.current_index == 0


class TestInputs:
    def test_rotation_interval_change_resets_countdown(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, interval=10)
        engine.start()
        run_seconds(ticks, scheduler, 3)
        engine.set_rotation_interval(30)
        assert engine.rotation_interval == 30
        assert engine.state.countdown_remaining.total_seconds == 30

    def test_rejects_interval_below_one(self, ticks, scheduler):
        with pytest.raises(ValueError):
            SlideshowEngine(ticks, scheduler, rotation_interval=0)
        engine = _engine(ticks, scheduler)
        with pytest.raises(ValueError):
            engine.set_rotation_interval(0)

    def test_apply_settings(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.apply_settings(Settings(rotation_time=60, slideshow_order=SlideshowOrder.RANDOM))
        assert engine.rotation_interval == 60
        assert engine.state.order is SlideshowOrder.RANDOM

    def test_shrinking_list_resets_out_of_range_index(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=5)
        engine.previous()
        scheduler.run_pending()
        assert engine.current_index == 4
        engine.set_images(_records(2))
        assert engine.current_index == 0

    def test_set_images_keeps_index_in_range(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=5)
        engine.next()
        scheduler.run_pending()
        engine.set_images(_records(4))
        assert engine.current_index == 1

    def test_identical_list_keeps_transition(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.start()
        run_seconds(ticks, scheduler, 9)
        ticks.fire()
        assert engine.is_transitioning
        engine.set_images(_records(3))
        assert engine.is_transitioning
        assert scheduler.run_pending() == 1
        assert engine.current_index == 1

    def test_new_list_keeps_transition_with_target_in_range(self, ticks, scheduler):
        engine = _engine(ticks, scheduler)
        engine.next()
        engine.set_images(_records(4))
        assert engine.state.pending_index == 1
        scheduler.run_pending()
        assert engine.current_index == 1

    def test_shrinking_list_cancels_out_of_range_transition(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=5)
        engine.previous()
        assert engine.state.pending_index == 4
        engine.set_images(_records(2))
        assert not engine.is_transitioning
        assert scheduler.run_pending() == 0
        assert engine.current_index == 0

    def test_current_image(self, ticks, scheduler):
        engine = _engine(ticks, scheduler, n=0)
        assert engine.current_image() is None
        engine.set_images(_records(2))
        assert engine.current_image().url == "/photos/0.jpg"


class TestEvents:
    async def test_publishes_image_changed(self, ticks, scheduler, event_bus: EventBus):
        changed: list[Event] = []
        event_bus.subscribe(events.SLIDESHOW_IMAGE_CHANGED, changed.append)
        engine = SlideshowEngine(ticks, scheduler, rotation_interval=10, event_bus=event_bus)
        engine.set_images(_records(3))
        engine.next()
        scheduler.run_pending()
        await asyncio.sleep(0.1)

        assert [e.payload["index"] for e in changed] == [0, 1]
        last = changed[-1].payload
        assert last["url"] == "/photos/1.jpg"
        assert last["count"] == 3
        assert last["direction"] == "next"
