"""Shared ``requests`` wrapper for the weather and image fetchers."""

from __future__ import annotations

import time
from typing import Any

import requests

from photoframe.services.error_utils import summarize_error

USER_AGENT = "PhotoFrame/1.0"


def fetch_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 6.0,
    retries: int = 1,
    backoff: float = 1.5,
    session: requests.Session | None = None,
) -> Any:
    """GET *url* and return parsed JSON.

    Args:
        url: Full URL to fetch.
        params: Query-string parameters.
        headers: Extra HTTP headers (``User-Agent`` is always set).
        timeout: Per-request timeout in seconds.
        retries: Additional attempts after the first failure.
        backoff: Sleep ``backoff * attempt`` seconds between attempts.
        session: Optional session (connection reuse, test injection).

    Raises:
        RuntimeError: With a short summary once all attempts failed.
    """
    hdrs = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        hdrs.update(headers)
    getter = session.get if session is not None else requests.get

    last_exc: Exception | None = None
    for attempt in range(1 + retries):
        try:
            resp = getter(url, params=params, headers=hdrs, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            last_exc = exc
            if attempt < retries:
                time.sleep(backoff * (attempt + 1))

    assert last_exc is not None
    raise RuntimeError(summarize_error(last_exc)) from last_exc
