"""HTTP utilities for interpreting backend error responses."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from json import JSONDecodeError
from typing import Optional

import httpx

_ERROR_MESSAGE_KEYS: tuple[str, ...] = ("message", "error", "detail")


def extract_error_message(response: httpx.Response) -> str:
    """Return the best available message for a non-2xx response.

    The backend reports errors as ``{"message": ...}`` but older deployments
    use ``error`` or ``detail``. Anything that is not a JSON object falls back
    to the status line.
    """
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        body = response.json()
    except (JSONDecodeError, UnicodeDecodeError):
        return fallback
    if not isinstance(body, dict):
        return fallback
    for key in _ERROR_MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return fallback


def parse_retry_after(
    value: Optional[str], *, now: Optional[datetime] = None
) -> Optional[float]:
    """Parse a ``Retry-After`` header into seconds.

    Accepts both delta-seconds and HTTP-date forms. Unparseable values yield
    ``None`` so callers apply their own fallback.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        seconds = None
    if seconds is not None:
        return seconds if seconds >= 0 else None

    try:
        target = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    reference = now or datetime.now(timezone.utc)
    return max(0.0, (target - reference).total_seconds())


__all__ = ["extract_error_message", "parse_retry_after"]
