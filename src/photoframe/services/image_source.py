"""Image list provider for the slideshow.

Reads the photo directory directly, or asks a remote PhotoFrame API for
``/api/images``.  A failed fetch never reaches the caller: it is logged
and the fixed sample list is returned instead.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests
from pydantic import ValidationError

from photoframe.core.models.state import ImageRecord
from photoframe.services.http_helpers import fetch_json

_log = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

FALLBACK_IMAGES: tuple[ImageRecord, ...] = tuple(
    ImageRecord(url=f"/photos/photo{i}.jpg", name=f"Sample {i}") for i in range(1, 6)
)


def is_image_file(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


def list_photo_directory(directory: Path, url_prefix: str = "/photos") -> list[dict[str, Any]]:
    """Return ``[{url, name, lastModified}]`` for image files in *directory*.

    The directory is created when missing.  ``lastModified`` is in
    milliseconds since the epoch.
    """
    directory.mkdir(parents=True, exist_ok=True)
    listing = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name.lower()):
        if not path.is_file() or not is_image_file(path.name):
            continue
        listing.append(
            {
                "url": f"{url_prefix}/{quote(path.name)}",
                "name": path.name,
                "lastModified": int(path.stat().st_mtime * 1000),
            }
        )
    return listing


def sample_listing() -> list[dict[str, Any]]:
    """The fallback list in API form, stamped with the current time."""
    now_ms = int(time.time() * 1000)
    return [{"url": r.url, "name": r.name, "lastModified": now_ms} for r in FALLBACK_IMAGES]


class ImageSource:
    """Fetches the current image list.

    Args:
        photos_dir: Local directory to list when no *base_url* is given.
        base_url: Root URL of a PhotoFrame API serving ``/api/images``.
        timeout: HTTP timeout for the remote mode.
        session: Optional ``requests`` session.
    """

    def __init__(
        self,
        photos_dir: Path | str | None = None,
        base_url: str | None = None,
        timeout: float = 6.0,
        session: requests.Session | None = None,
    ) -> None:
        if photos_dir is None and not base_url:
            raise ValueError("ImageSource needs a photos_dir or a base_url")
        self._photos_dir = Path(photos_dir) if photos_dir is not None else None
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._session = session

    def fetch(self) -> list[ImageRecord]:
        """Return the image list, or :data:`FALLBACK_IMAGES` on any failure."""
        try:
            raw = self._fetch_raw()
            if not isinstance(raw, list):
                raise TypeError(f"expected a list of images, got {type(raw).__name__}")
            records = [ImageRecord.model_validate(item) for item in raw]
        except (RuntimeError, OSError, TypeError, ValidationError) as exc:
            _log.error("Could not fetch image list (%s); using %d sample images", exc, len(FALLBACK_IMAGES))
            return list(FALLBACK_IMAGES)
        _log.debug("Fetched %d images", len(records))
        return records

    def _fetch_raw(self) -> Any:
        if self._base_url is None:
            assert self._photos_dir is not None
            return list_photo_directory(self._photos_dir)
        data = fetch_json(f"{self._base_url}/api/images", timeout=self._timeout, session=self._session)
        if isinstance(data, list):
            for item in data:
                if isinstance(item, dict) and str(item.get("url", "")).startswith("/"):
                    item["url"] = f"{self._base_url}{item['url']}"
        return data
