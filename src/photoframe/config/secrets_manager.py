"""Secrets: upload API key and weather API key.

Precedence: ``os.environ`` → secrets file → caller-supplied default.

The secrets file is the first that exists of:
1. ``PHOTOFRAME_SECRETS_FILE``
2. ``secrets/secrets.env`` (working directory)
3. ``/etc/photoframe/secrets.env``

File format: ``KEY=VALUE`` lines; ``#`` comments and blank lines are
ignored, surrounding quotes are stripped.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from photoframe.core.models.config import DEFAULT_API_KEY

_log = logging.getLogger(__name__)

_DEFAULT_PATHS: tuple[str, ...] = (
    "secrets/secrets.env",
    "/etc/photoframe/secrets.env",
)

API_KEY = "PHOTOFRAME_API_KEY"
WEATHER_API_KEY = "PHOTOFRAME_WEATHER_API_KEY"


class SecretsManager:
    """Lazy-loaded, lock-protected key/value secrets store."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._explicit_path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._store: dict[str, str] | None = None

    def get(self, key: str, default: str = "") -> str:
        """Return *key* from the environment, then the file, then *default*."""
        env_val = os.environ.get(key)
        if env_val is not None:
            return env_val
        return self._loaded().get(key, default)

    def upload_api_key(self) -> str:
        """The shared secret expected in the ``X-API-Key`` header."""
        return self.get(API_KEY, DEFAULT_API_KEY)

    def weather_api_key(self) -> str:
        return self.get(WEATHER_API_KEY)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _loaded(self) -> dict[str, str]:
        if self._store is not None:
            return self._store
        with self._lock:
            if self._store is None:
                path = self._read_path()
                if path is None:
                    _log.debug("No secrets file found; only os.environ is used")
                    self._store = {}
                else:
                    _log.info("Loading secrets from %s", path)
                    self._store = _parse_env_file(path)
        return self._store

    def _read_path(self) -> Path | None:
        if self._explicit_path is not None:
            return self._explicit_path if self._explicit_path.is_file() else None
        explicit = os.environ.get("PHOTOFRAME_SECRETS_FILE")
        if explicit:
            if Path(explicit).is_file():
                return Path(explicit)
            _log.warning("PHOTOFRAME_SECRETS_FILE=%s does not exist", explicit)
            return None
        for candidate in _DEFAULT_PATHS:
            if Path(candidate).is_file():
                return Path(candidate)
        return None


def _parse_env_file(path: Path) -> dict[str, str]:
    store: dict[str, str] = {}
    for lineno, raw_line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            _log.warning("Ignoring malformed line %d in %s", lineno, path)
            continue
        key, _, value = line.partition("=")
        store[key.strip()] = value.strip().strip("\"'")
    return store
