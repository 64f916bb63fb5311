"""PhotoFrame — Application entry point (NiceGUI composition root).

Wires together: Config → EventBus → SettingsStore → FrameSystem → API → UI.
NiceGUI owns the event loop; ``app.on_startup`` / ``app.on_shutdown``
handle lifecycle.
"""

from __future__ import annotations

import logging as _logging
from pathlib import Path

from nicegui import app, ui

from photoframe.config.config_manager import load_config
from photoframe.config.secrets_manager import SecretsManager
from photoframe.config.settings_store import JsonFileSettingsStorage, SettingsStore
from photoframe.core.event_bus import EventBus
from photoframe.core.models.config import DEFAULT_API_KEY
from photoframe.core.system_manager import FrameSystem
from photoframe.log_config.logger import setup_logging
from photoframe.server.upload_api import create_upload_router
from photoframe.services.image_source import ImageSource
from photoframe.services.weather_service import WeatherClient, WeatherMonitor
from photoframe.ui.layout import FrameLayout
from photoframe.ui.settings_page import SettingsPage

_log = _logging.getLogger(__name__)


def main() -> None:
    """Synchronous entry point — bootstraps and starts NiceGUI."""

    # 1. Load configuration
    config = load_config()
    setup_logging(log_level=config.system.log_level, log_dir=config.system.log_dir)
    _log.info("Starting PhotoFrame")
    secrets = SecretsManager()

    if secrets.upload_api_key() == DEFAULT_API_KEY and not config.system.dev_mode:
        _log.warning(
            "Upload API is using the default key; set PHOTOFRAME_API_KEY before exposing the frame"
        )

    # 2. Event bus + settings
    bus = EventBus(queue_size=config.system.event_bus_queue_size)
    store = SettingsStore(JsonFileSettingsStorage(config.system.settings_file), event_bus=bus)

    # 3. Collaborators
    upload_dir = Path(config.upload.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    image_source = ImageSource(
        photos_dir=upload_dir,
        base_url=config.slideshow.image_source_url,
        timeout=config.slideshow.request_timeout_seconds,
    )
    weather = None
    weather_key = secrets.weather_api_key()
    if weather_key:
        weather = WeatherMonitor(
            WeatherClient(weather_key, timeout=config.slideshow.request_timeout_seconds)
        )
    else:
        _log.info("No weather API key configured; weather widget shows sample data")

    system = FrameSystem(
        config=config,
        event_bus=bus,
        store=store,
        image_source=image_source,
        weather=weather,
    )

    # 4. HTTP API and static photos
    app.include_router(create_upload_router(config.upload, secrets, event_bus=bus))
    app.add_static_files("/photos", str(upload_dir))

    # 5. Pages
    FrameLayout(system=system, event_bus=bus).setup_page()
    SettingsPage(system=system).setup_page()

    # 6. Wire lifecycle hooks
    async def on_startup() -> None:
        _log.info("NiceGUI startup — starting frame system")
        await system.start()
        _log.info("PhotoFrame running on http://localhost:%d", config.system.webui_port)

    async def on_shutdown() -> None:
        _log.info("NiceGUI shutdown — stopping frame system")
        await system.shutdown(reason="nicegui shutdown")
        _log.info("PhotoFrame stopped")

    app.on_startup(on_startup)
    app.on_shutdown(on_shutdown)

    # 7. Launch NiceGUI (blocks forever)
    ui.run(
        port=config.system.webui_port,
        title="PhotoFrame",
        reload=False,
        show=False,
    )


if __name__ == "__main__":
    main()
