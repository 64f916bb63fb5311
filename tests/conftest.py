"""Shared pytest fixtures for PhotoFrame tests."""

from __future__ import annotations

import pytest

from photoframe.config.secrets_manager import SecretsManager
from photoframe.core.event_bus import EventBus
from photoframe.core.models.config import FrameConfig
from photoframe.core.models.state import ImageRecord
from photoframe.core.timing import ManualScheduler, ManualTickSource


@pytest.fixture
async def event_bus():
    """Provide a started EventBus that is stopped after the test."""
    bus = EventBus(queue_size=100)
    await bus.start()
    yield bus
    await bus.stop()


@pytest.fixture(scope="session")
def frame_config() -> FrameConfig:
    """Session-scoped default config (no file I/O)."""
    return FrameConfig()


@pytest.fixture
def secrets(tmp_path, monkeypatch) -> SecretsManager:
    """SecretsManager backed by an empty temp file, isolated from the env."""
    monkeypatch.delenv("PHOTOFRAME_API_KEY", raising=False)
    monkeypatch.delenv("PHOTOFRAME_WEATHER_API_KEY", raising=False)
    return SecretsManager(tmp_path / "secrets.env")


@pytest.fixture
def ticks() -> ManualTickSource:
    return ManualTickSource()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def images() -> list[ImageRecord]:
    return [ImageRecord(url=f"/photos/p{i}.jpg", name=f"p{i}.jpg") for i in range(3)]
