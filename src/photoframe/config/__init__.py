"""Configuration: config manager, secrets, and the user settings store."""

from photoframe.config.config_manager import load_config
from photoframe.config.secrets_manager import SecretsManager
from photoframe.config.settings_store import (
    InMemorySettingsStorage,
    JsonFileSettingsStorage,
    SettingsStore,
)

__all__ = [
    "load_config",
    "SecretsManager",
    "InMemorySettingsStorage",
    "JsonFileSettingsStorage",
    "SettingsStore",
]
