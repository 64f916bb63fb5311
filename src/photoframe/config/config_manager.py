"""Config manager — load JSON → apply env overrides → validate → FrameConfig."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from photoframe.core.models.config import FrameConfig

_log = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "photoframe_config.json"

# env var → (section, field, type)
_ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "PHOTOFRAME_LOG_LEVEL": ("system", "log_level", str),
    "PHOTOFRAME_DEV_MODE": ("system", "dev_mode", bool),
    "PHOTOFRAME_PORT": ("system", "webui_port", int),
    "PHOTOFRAME_SETTINGS_FILE": ("system", "settings_file", str),
    "PHOTOFRAME_UPLOAD_DIR": ("upload", "upload_dir", str),
    "PHOTOFRAME_MAX_FILE_SIZE": ("upload", "max_file_size", int),
    "PHOTOFRAME_RATE_LIMIT": ("upload", "rate_limit_max_requests", int),
    "PHOTOFRAME_IMAGE_SOURCE_URL": ("slideshow", "image_source_url", str),
}


def _coerce(value: str, target_type: type) -> object:
    if target_type is bool:
        return value.strip().lower() in ("1", "true", "yes")
    return target_type(value)


def load_config(config_path: Path | str | None = None) -> FrameConfig:
    """Load, override, and validate the PhotoFrame configuration.

    Args:
        config_path: Path to ``photoframe_config.json``.  When *None*, falls
            back to ``PHOTOFRAME_CONFIG_FILE`` and then the file shipped
            next to this module.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If the merged document is invalid.
    """
    path = _resolve_config_path(config_path)
    _log.info("Loading config from %s", path)

    raw: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))

    for env_key, (section, field, typ) in _ENV_OVERRIDES.items():
        env_val = os.environ.get(env_key)
        if env_val is not None:
            raw.setdefault(section, {})[field] = _coerce(env_val, typ)
            _log.debug("Env override: %s -> %s.%s = %r", env_key, section, field, env_val)

    return FrameConfig(**raw)


def atomic_write_json(path: Path, payload: Any) -> None:
    """Write *payload* as JSON, replacing *path* in one rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with open(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
            handle.write("\n")
        Path(tmp_name).replace(path)
    finally:
        tmp_path = Path(tmp_name)
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def _resolve_config_path(config_path: Path | str | None) -> Path:
    if config_path is not None:
        p = Path(config_path)
    else:
        env = os.environ.get("PHOTOFRAME_CONFIG_FILE")
        p = Path(env) if env else _DEFAULT_CONFIG_PATH
    if not p.is_file():
        raise FileNotFoundError(
            f"Config file not found: {p}\n"
            "Create photoframe_config.json or set PHOTOFRAME_CONFIG_FILE to a valid path."
        )
    return p
