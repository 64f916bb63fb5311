"""Photo upload / listing / delete endpoints.

Mounted on the NiceGUI FastAPI app by :func:`photoframe.main.main`:

* ``GET    /api/test``           — health check.
* ``GET    /api/images``         — ``[{url, name, lastModified}]``; sample
  entries when the directory is empty.
* ``POST   /api/upload-image``   — multipart field ``image``.
* ``DELETE /api/delete-image``   — ``?name=<filename>``.

Upload and delete require the shared secret in ``X-API-Key`` and are
rate limited per client IP + key.  Every rejection is a 4xx JSON body
``{"success": false, "error": ...}``.
"""

from __future__ import annotations

import hmac
import logging
import mimetypes
import time
import uuid
from pathlib import Path

from fastapi import APIRouter, File, Header, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from photoframe.config.secrets_manager import SecretsManager
from photoframe.core import events
from photoframe.core.event_bus import EventBus
from photoframe.core.models.config import UploadConfig
from photoframe.server.rate_limit import FixedWindowRateLimiter
from photoframe.services.image_source import is_image_file, list_photo_directory, sample_listing

_log = logging.getLogger(__name__)


def generate_filename(original: str, content_type: str | None = None) -> str:
    """``image-<epoch ms>-<random hex><ext>``; the extension comes from the
    original name when it is an image extension, else from the MIME type.
    """
    ext = Path(original).suffix.lower()
    if not is_image_file(f"x{ext}"):
        ext = (mimetypes.guess_extension(content_type or "") or ".jpg").lower()
        if ext == ".jpe":
            ext = ".jpg"
    return f"image-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{ext}"


def _fail(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": message})


def create_upload_router(
    config: UploadConfig,
    secrets: SecretsManager,
    event_bus: EventBus | None = None,
    limiter: FixedWindowRateLimiter | None = None,
) -> APIRouter:
    """Build the ``/api`` router bound to *config*'s upload directory."""
    upload_dir = Path(config.upload_dir)
    limiter = limiter or FixedWindowRateLimiter(
        config.rate_limit_max_requests, config.rate_limit_window_seconds
    )
    max_mb = config.max_file_size / (1024 * 1024)
    router = APIRouter(prefix="/api")

    def _authorise(request: Request, api_key: str | None) -> JSONResponse | None:
        if not api_key:
            return _fail(401, "API key required (X-API-Key header)")
        if not hmac.compare_digest(api_key.encode(), secrets.upload_api_key().encode()):
            _log.warning("Rejected request with invalid API key from %s", _client_host(request))
            return _fail(403, "Invalid API key")
        key = f"{_client_host(request)}:{api_key}"
        if not limiter.hit(key):
            _log.warning("Rate limit exceeded for %s", _client_host(request))
            response = _fail(429, "Too many requests, please try again later")
            response.headers["Retry-After"] = str(limiter.retry_after(key))
            return response
        return None

    def _notify(event_type: str, filename: str) -> None:
        if event_bus is not None:
            event_bus.publish_threadsafe(event_type, {"filename": filename}, source="upload_api")

    @router.get("/test")
    def api_test() -> dict:
        return {"status": "ok", "message": "API is working"}

    @router.get("/images")
    def list_images():
        try:
            listing = list_photo_directory(upload_dir)
        except OSError:
            _log.exception("Failed to list %s", upload_dir)
            return JSONResponse(status_code=500, content={"error": "Failed to fetch images"})
        return listing or sample_listing()

    @router.post("/upload-image")
    async def upload_image(
        request: Request,
        image: UploadFile | None = File(default=None),
        x_api_key: str | None = Header(default=None),
    ):
        denied = _authorise(request, x_api_key)
        if denied is not None:
            return denied
        if image is None or not image.filename:
            return _fail(400, "No file uploaded (expected form field 'image')")
        if image.content_type not in config.allowed_mime_types:
            return _fail(
                400,
                f"Invalid file type {image.content_type!r}; allowed: "
                + ", ".join(config.allowed_mime_types),
            )

        data = await image.read(config.max_file_size + 1)
        if len(data) > config.max_file_size:
            return _fail(413, f"File too large (max {max_mb:g} MB)")

        filename = generate_filename(image.filename, image.content_type)
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / filename).write_bytes(data)
        _log.info(
            "Uploaded %s as %s (%d bytes) from %s",
            image.filename,
            filename,
            len(data),
            _client_host(request),
        )
        _notify(events.PHOTO_UPLOADED, filename)
        return {"success": True, "filename": filename}

    @router.delete("/delete-image")
    def delete_image(
        request: Request,
        name: str = Query(default=""),
        x_api_key: str | None = Header(default=None),
    ):
        denied = _authorise(request, x_api_key)
        if denied is not None:
            return denied
        if not name:
            return _fail(400, "Missing 'name' parameter")
        if Path(name).name != name or name in (".", ".."):
            return _fail(400, "Invalid file name")
        target = upload_dir / name
        if not is_image_file(name) or not target.is_file():
            return _fail(404, f"File not found: {name}")
        target.unlink()
        _log.info("Deleted %s", name)
        _notify(events.PHOTO_DELETED, name)
        return {"success": True, "filename": name}

    return router


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
