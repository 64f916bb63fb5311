"""Weather widget data — OpenWeatherMap client and refresh cache.

Forecast modes:

* ``today``    — current conditions.
* ``tomorrow`` — the forecast entry closest to noon tomorrow.
* ``smart``    — today before noon, tomorrow afterwards.

:class:`WeatherMonitor` keeps the last report and only hits the network
when it is older than the configured refresh interval.  Failures never
raise out of :meth:`WeatherMonitor.refresh`; the report carries an
``error`` message plus the previous (or sample) data instead.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Callable

import requests
from pydantic import BaseModel, Field

from photoframe.core.models.settings import WeatherSettings
from photoframe.services.http_helpers import fetch_json

_log = logging.getLogger(__name__)

API_BASE = "https://api.openweathermap.org/data/2.5"

LANGUAGE_MAP = {
    "en": "en",
    "es": "es",
    "fr": "fr",
    "de": "de",
    "it": "it",
    "zh": "zh_cn",
    "ja": "ja",
}


def map_language(app_language: str) -> str:
    """Map an app language code to the OpenWeatherMap ``lang`` parameter."""
    return LANGUAGE_MAP.get(app_language, "en")


def icon_url(icon_code: str) -> str:
    return f"https://openweathermap.org/img/wn/{icon_code}@2x.png"


def _sample_conditions(location: str) -> dict[str, Any]:
    return {
        "name": location or "Sample",
        "main": {"temp": 20.0, "humidity": 50},
        "weather": [{"description": "clear sky", "icon": "01d"}],
        "wind": {"speed": 2.0},
    }


class WeatherReport(BaseModel):
    """What the weather widget renders."""

    current: dict[str, Any] | None = None
    forecast: dict[str, Any] | None = None
    air_quality: dict[str, Any] | None = None
    error: str | None = None
    is_sample: bool = False
    fetched_at: datetime | None = None

    @property
    def conditions(self) -> dict[str, Any] | None:
        return self.current or self.forecast

    @property
    def temperature(self) -> float | None:
        cond = self.conditions
        if not cond:
            return None
        return cond.get("main", {}).get("temp")

    @property
    def description(self) -> str:
        cond = self.conditions or {}
        weather = cond.get("weather") or [{}]
        return str(weather[0].get("description", ""))

    @property
    def icon(self) -> str | None:
        cond = self.conditions or {}
        weather = cond.get("weather") or [{}]
        code = weather[0].get("icon")
        return icon_url(code) if code else None


class WeatherClient:
    """Thin OpenWeatherMap client.

    Args:
        api_key: OpenWeatherMap ``appid``.
        timeout: Per-request timeout.
        retries: Extra attempts per request (see :func:`fetch_json`).
        session: Optional ``requests`` session.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 6.0,
        retries: int = 1,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._retries = retries
        self._session = session

    def _get(self, endpoint: str, params: dict[str, Any]) -> Any:
        if not self._api_key:
            raise RuntimeError("Weather API key missing")
        return fetch_json(
            f"{API_BASE}/{endpoint}",
            params={**params, "appid": self._api_key},
            timeout=self._timeout,
            retries=self._retries,
            session=self._session,
        )

    @staticmethod
    def location_params(settings: WeatherSettings) -> dict[str, Any]:
        """Coordinates win over the location name when both are set."""
        if settings.coordinates.is_set:
            return {"lat": settings.coordinates.lat, "lon": settings.coordinates.lon}
        if settings.location.strip():
            return {"q": settings.location.strip()}
        raise ValueError("Please enter a location or coordinates")

    def fetch_current(self, settings: WeatherSettings, language: str = "en") -> dict[str, Any]:
        params = {
            **self.location_params(settings),
            "units": settings.unit,
            "lang": map_language(language),
        }
        return self._get("weather", params)

    def fetch_forecast(
        self,
        settings: WeatherSettings,
        language: str = "en",
        now: datetime | None = None,
    ) -> dict[str, Any] | None:
        params = {
            **self.location_params(settings),
            "units": settings.unit,
            "lang": map_language(language),
        }
        data = self._get("forecast", params)
        entries = data.get("list") or []
        if not entries:
            return None
        return pick_tomorrow_noon(entries, now or datetime.now()) or entries[0]

    def fetch_air_quality(self, lat: float, lon: float) -> dict[str, Any] | None:
        data = self._get("air_pollution", {"lat": lat, "lon": lon})
        entries = data.get("list") or []
        return entries[0] if entries else None

    def get_weather(
        self,
        settings: WeatherSettings,
        language: str = "en",
        now: datetime | None = None,
    ) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """Return ``(current, forecast)`` for the configured forecast mode."""
        now = now or datetime.now()
        mode = settings.forecast_mode
        if mode == "smart":
            mode = "today" if now.hour < 12 else "tomorrow"
        if mode == "tomorrow":
            return None, self.fetch_forecast(settings, language, now)
        return self.fetch_current(settings, language), None


def pick_tomorrow_noon(entries: list[dict[str, Any]], now: datetime) -> dict[str, Any] | None:
    """The 3-hourly forecast entry within three hours of noon tomorrow."""
    tomorrow = (now + timedelta(days=1)).date()
    for entry in entries:
        when = datetime.fromtimestamp(entry.get("dt", 0))
        if when.date() == tomorrow and abs(when.hour - 12) < 3:
            return entry
    return None


class WeatherMonitor:
    """Caches the last :class:`WeatherReport` and refreshes it when stale.

    Args:
        client: The API client.
        clock: Returns the current epoch time; injectable for tests.
    """

    def __init__(self, client: WeatherClient, clock: Callable[[], float] = time.time) -> None:
        self._client = client
        self._clock = clock
        self._report = WeatherReport()
        self._last_fetch: float | None = None

    @property
    def report(self) -> WeatherReport:
        return self._report

    def seconds_until_refresh(self, settings: WeatherSettings) -> int:
        if self._last_fetch is None:
            return 0
        due = self._last_fetch + settings.refresh_interval * 60
        return max(0, int(due - self._clock()))

    def is_stale(self, settings: WeatherSettings) -> bool:
        return self.seconds_until_refresh(settings) == 0

    def refresh(
        self,
        settings: WeatherSettings,
        language: str = "en",
        force: bool = False,
    ) -> WeatherReport:
        """Fetch new data if stale (or *force*), else return the cached report."""
        if not force and not self.is_stale(settings):
            return self._report

        try:
            current, forecast = self._client.get_weather(settings, language)
            air_quality = None
            if settings.show_air_quality:
                air_quality = self._fetch_air_quality(current or forecast)
        except (RuntimeError, ValueError) as exc:
            _log.warning("Weather refresh failed: %s", exc)
            self._report = self._fallback(settings, str(exc))
            self._last_fetch = self._clock()
            return self._report

        self._report = WeatherReport(
            current=current,
            forecast=forecast,
            air_quality=air_quality,
            fetched_at=datetime.fromtimestamp(self._clock()),
        )
        self._last_fetch = self._clock()
        _log.info("Weather updated (%s)", self._report.description or "no description")
        return self._report

    def _fetch_air_quality(self, conditions: dict[str, Any] | None) -> dict[str, Any] | None:
        coord = (conditions or {}).get("coord")
        if not coord:
            _log.debug("Weather data has no coordinates for air quality lookup")
            return None
        try:
            return self._client.fetch_air_quality(coord["lat"], coord["lon"])
        except RuntimeError as exc:
            _log.warning("Air quality lookup failed: %s", exc)
            return None

    def _fallback(self, settings: WeatherSettings, error: str) -> WeatherReport:
        if self._report.conditions is not None:
            return self._report.model_copy(update={"error": error})
        return WeatherReport(
            current=_sample_conditions(settings.location),
            error=error,
            is_sample=True,
        )
