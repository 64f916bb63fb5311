"""Settings store — single writer for the user settings bag.

The store holds the current :class:`Settings`, hands typed views of it to
the engines, and is the only place that mutates it (:meth:`SettingsStore.update`).
Persistence goes through a :class:`SettingsStorage` port; the JSON-file
backend keeps the blob under one key, ``photoframeSettings``, inside a
small key/value document so the file layout mirrors browser local storage.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from photoframe.config.config_manager import atomic_write_json
from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.interfaces.storage import SettingsStorage
from photoframe.core.models.settings import Settings, TimerSettings, WeatherSettings
from photoframe.core.models.state import SlideshowOrder

_log = logging.getLogger(__name__)

SETTINGS_KEY = "photoframeSettings"

SettingsListener = Callable[[Settings], None]


def _parse_blob(blob: Any) -> Settings:
    if isinstance(blob, str):
        blob = json.loads(blob)
    if not isinstance(blob, dict):
        raise ValueError(f"settings blob must be an object, got {type(blob).__name__}")
    return Settings.model_validate(blob)


class JsonFileSettingsStorage(SettingsStorage):
    """Settings persisted in a JSON key/value file.

    Missing or unreadable data never raises: the error is logged and
    defaults are returned.
    """

    def __init__(self, path: Path | str, key: str = SETTINGS_KEY) -> None:
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        if not self._path.is_file():
            _log.info("No settings file at %s; using defaults", self._path)
            return Settings()
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(document, dict) or self._key not in document:
                _log.info("No '%s' entry in %s; using defaults", self._key, self._path)
                return Settings()
            return _parse_blob(document[self._key])
        except (OSError, ValueError, ValidationError) as exc:
            _log.error("Error loading settings from %s: %s", self._path, exc)
            return Settings()

    def save(self, settings: Settings) -> None:
        document: dict[str, Any] = {}
        if self._path.is_file():
            try:
                existing = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(existing, dict):
                    document = existing
            except (OSError, ValueError) as exc:
                _log.warning("Overwriting unreadable settings file %s: %s", self._path, exc)
        document[self._key] = settings.to_blob()
        atomic_write_json(self._path, document)
        _log.info("Settings saved to %s", self._path)


class InMemorySettingsStorage(SettingsStorage):
    """Keeps the serialised blob in memory."""

    def __init__(self, blob: Any = None) -> None:
        self.blob = blob
        self.save_count = 0

    def load(self) -> Settings:
        if self.blob is None:
            return Settings()
        try:
            return _parse_blob(self.blob)
        except (ValueError, ValidationError) as exc:
            _log.error("Error loading settings: %s", exc)
            return Settings()

    def save(self, settings: Settings) -> None:
        self.blob = settings.to_blob()
        self.save_count += 1


def _deep_merge(base: dict[str, Any], partial: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in partial.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SettingsStore:
    """Owns the live settings and notifies subscribers of changes.

    Args:
        storage: Persistence backend; read once here, written on :meth:`save`.
        event_bus: Optional bus that receives ``settings.changed``.
    """

    def __init__(self, storage: SettingsStorage, event_bus: EventBus | None = None) -> None:
        self._storage = storage
        self._bus = event_bus
        self._settings = storage.load()
        self._listeners: list[SettingsListener] = []

    # ------------------------------------------------------------------
    # Typed getters
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def rotation_interval(self) -> int:
        return self._settings.rotation_time

    @property
    def slideshow_order(self) -> SlideshowOrder:
        return self._settings.slideshow_order

    @property
    def timer_settings(self) -> TimerSettings:
        return self._settings.time_display.timer

    @property
    def weather_settings(self) -> WeatherSettings:
        return self._settings.weather

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Call *listener* with the new settings after every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, partial: Mapping[str, Any]) -> Settings:
        """Deep-merge *partial* (snake_case field names) and validate.

        Raises:
            pydantic.ValidationError: If the merged settings are invalid;
                the current settings are left untouched.
        """
        merged = _deep_merge(self._settings.model_dump(mode="json"), partial)
        self._replace(Settings.model_validate(merged))
        return self._settings

    def reset_to_defaults(self) -> Settings:
        self._replace(Settings())
        return self._settings

    def save(self) -> None:
        """Persist the whole blob."""
        self._storage.save(self._settings)

    def _replace(self, new: Settings) -> None:
        old = self._settings
        if new == old:
            return
        self._settings = new
        old_dump = old.model_dump()
        changed = sorted(k for k, v in new.model_dump().items() if old_dump.get(k) != v)
        _log.info("Settings changed: %s", ", ".join(changed))
        for listener in list(self._listeners):
            try:
                listener(new)
            except Exception:
                _log.exception("Settings listener %s raised", listener)
        if self._bus is not None:
            self._bus.publish_nowait(events.SETTINGS_CHANGED, {"changed": changed}, source="settings")
