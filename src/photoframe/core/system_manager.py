"""FrameSystem — startup & shutdown orchestration.

Owns the two engines and the periodic collaborators (image list and
weather refresh).  Settings changes flow one way: the store notifies
:meth:`FrameSystem._on_settings_changed`, which pushes typed settings into
each engine.  Views only read engine state and call engine operations.
"""

from __future__ import annotations

import asyncio
import logging

from photoframe.config.settings_store import SettingsStore
from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.interfaces.timing import Scheduler, TickSource
from photoframe.core.models.config import FrameConfig
from photoframe.core.models.event import Event
from photoframe.core.models.settings import Settings
from photoframe.core.slideshow_engine import SlideshowEngine
from photoframe.core.timer_engine import TimerEngine
from photoframe.core.timing import AsyncioScheduler, AsyncioTickSource
from photoframe.services.image_source import ImageSource
from photoframe.services.weather_service import WeatherMonitor, WeatherReport

_log = logging.getLogger(__name__)

WEATHER_CHECK_SECONDS = 60.0


class FrameSystem:
    """Top-level orchestrator.

    Tick sources and the scheduler default to the asyncio backends; tests
    pass manual ones.

    Args:
        config: Validated configuration.
        event_bus: The global event bus (not yet started).
        store: Settings store.
        image_source: Image list provider.
        weather: Optional weather cache; ``None`` disables the widget feed.
    """

    def __init__(
        self,
        config: FrameConfig,
        event_bus: EventBus,
        store: SettingsStore,
        image_source: ImageSource,
        weather: WeatherMonitor | None = None,
        timer_ticks: TickSource | None = None,
        slideshow_ticks: TickSource | None = None,
        image_refresh_ticks: TickSource | None = None,
        weather_ticks: TickSource | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._bus = event_bus
        self._store = store
        self._image_source = image_source
        self._weather = weather

        self.timer = TimerEngine(
            timer_ticks or AsyncioTickSource(1.0, name="timer"),
            settings=store.timer_settings,
            event_bus=event_bus,
        )
        self.slideshow = SlideshowEngine(
            slideshow_ticks or AsyncioTickSource(1.0, name="slideshow"),
            scheduler or AsyncioScheduler(),
            rotation_interval=store.rotation_interval,
            order=store.slideshow_order,
            transition_delay=config.slideshow.transition_delay_seconds,
            event_bus=event_bus,
        )
        self._image_ticks = image_refresh_ticks or AsyncioTickSource(
            float(config.slideshow.image_refresh_seconds), name="images"
        )
        self._weather_ticks = weather_ticks or AsyncioTickSource(WEATHER_CHECK_SECONDS, name="weather")
        self._background: set[asyncio.Task] = set()
        self._unsubscribe_settings = None
        self._sub_ids: list[str] = []

    @property
    def store(self) -> SettingsStore:
        return self._store

    @property
    def weather_report(self) -> WeatherReport | None:
        return self._weather.report if self._weather is not None else None

    def weather_refresh_in(self) -> int | None:
        """Seconds until the cached weather goes stale, or ``None`` without a monitor."""
        if self._weather is None:
            return None
        return self._weather.seconds_until_refresh(self._store.weather_settings)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Bus → settings wiring → first image fetch → tick sources."""
        _log.info("FrameSystem starting")
        await self._bus.start()

        self._unsubscribe_settings = self._store.subscribe(self._on_settings_changed)
        self._sub_ids = [
            self._bus.subscribe(events.PHOTO_UPLOADED, self._on_photos_changed),
            self._bus.subscribe(events.PHOTO_DELETED, self._on_photos_changed),
        ]

        await self.refresh_images()
        self.slideshow.start()
        self._image_ticks.start(lambda: self._spawn(self.refresh_images()))
        if self._weather is not None and self._store.weather_settings.show:
            self._spawn(self.refresh_weather())
            self._weather_ticks.start(lambda: self._spawn(self.refresh_weather()))

        await self._bus.publish(events.SYSTEM_STARTED, {"images": len(self.slideshow.images)})
        _log.info("FrameSystem started")

    async def refresh_images(self) -> None:
        """Fetch the image list off-loop and hand it to the slideshow."""
        records = await asyncio.to_thread(self._image_source.fetch)
        self.slideshow.set_images(records)
        self._bus.publish_nowait(events.IMAGES_REFRESHED, {"count": len(records)}, source="system")

    async def refresh_weather(self, force: bool = False) -> WeatherReport | None:
        if self._weather is None:
            return None
        settings = self._store.settings
        report = await asyncio.to_thread(
            self._weather.refresh, settings.weather, settings.language, force
        )
        self._bus.publish_nowait(
            events.WEATHER_UPDATED,
            {"error": report.error, "is_sample": report.is_sample},
            source="system",
        )
        return report

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def shutdown(self, reason: str = "user request") -> None:
        """Stop every tick source, then the bus."""
        _log.info("FrameSystem shutting down: %s", reason)
        await self._bus.publish(events.SHUTDOWN_INITIATED, {"reason": reason})

        self.timer.shutdown()
        self.slideshow.stop()
        self._image_ticks.stop()
        self._weather_ticks.stop()
        for task in list(self._background):
            task.cancel()
        if self._unsubscribe_settings is not None:
            self._unsubscribe_settings()
            self._unsubscribe_settings = None
        for sub_id in self._sub_ids:
            self._bus.unsubscribe(sub_id)
        self._sub_ids.clear()

        await self._bus.stop()
        _log.info("FrameSystem shutdown complete")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_settings_changed(self, settings: Settings) -> None:
        self.timer.apply_settings(settings.time_display.timer)
        self.slideshow.apply_settings(settings)
        if self._weather is None:
            return
        if settings.weather.show and not self._weather_ticks.is_running:
            self._weather_ticks.start(lambda: self._spawn(self.refresh_weather()))
        elif not settings.weather.show:
            self._weather_ticks.stop()

    async def _on_photos_changed(self, event: Event) -> None:
        _log.debug("Photo %s: %s", event.event_type, event.payload.get("filename"))
        await self.refresh_images()

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
