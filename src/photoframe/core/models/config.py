"""Configuration Pydantic models: FrameConfig, SystemConfig, UploadConfig, SlideshowConfig."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_KEY = "default-api-key-change-me"


class SystemConfig(BaseModel):
    """Process-level runtime settings."""

    model_config = ConfigDict(extra="forbid")

    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: str = Field(default="logs", description="Directory for rotating log files")
    event_bus_queue_size: int = Field(default=1000, description="Max queued events")
    webui_port: int = Field(default=3001, description="NiceGUI / API listen port")
    settings_file: str = Field(
        default="data/photoframe_settings.json",
        description="JSON file holding the persisted settings blob",
    )
    dev_mode: bool = Field(default=True, description="Relaxes production warnings")


class UploadConfig(BaseModel):
    """Companion upload API limits."""

    model_config = ConfigDict(extra="forbid")

    upload_dir: str = Field(default="public/photos", description="Where photos are stored")
    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0, description="Bytes per upload")
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/gif",
            "image/webp",
        ],
    )
    rate_limit_window_seconds: float = Field(default=15 * 60, gt=0)
    rate_limit_max_requests: int = Field(default=10, ge=1)


class SlideshowConfig(BaseModel):
    """Slideshow plumbing that is not user-facing."""

    model_config = ConfigDict(extra="forbid")

    transition_delay_seconds: float = Field(
        default=0.1, ge=0, description="Delay between starting a transition and committing the index"
    )
    image_refresh_seconds: int = Field(
        default=300, ge=10, description="How often the image list is re-fetched"
    )
    image_source_url: str | None = Field(
        default=None,
        description="Base URL of a remote photo API; None lists upload_dir directly",
    )
    request_timeout_seconds: float = Field(default=6.0, gt=0)


class FrameConfig(BaseModel):
    """Top-level configuration loaded from ``photoframe_config.json``."""

    model_config = ConfigDict(extra="forbid")

    system: SystemConfig = Field(default_factory=SystemConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    slideshow: SlideshowConfig = Field(default_factory=SlideshowConfig)
