"""Companion HTTP API for listing, uploading and deleting photos."""

from photoframe.server.rate_limit import FixedWindowRateLimiter
from photoframe.server.upload_api import create_upload_router

__all__ = ["FixedWindowRateLimiter", "create_upload_router"]
