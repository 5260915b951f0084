"""Helpers for safe debug logging.

Webhook ids act as bearer credentials for the integration endpoint, and
sensor attributes may carry the device's location.  This module redacts
both before payloads or URLs reach DEBUG logs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "webhook_id",
        "webhookid",
        "cloudhook_url",
        "remote_ui_url",
        "secret",
        "token",
        "access_token",
        "authorization",
        "cookie",
        # Location attributes reported by geocode / location sensors
        "latitude",
        "longitude",
        "gps",
        "location",
    }
)

_SENSITIVE_SUFFIXES = ("_token", "_secret")
_MAX_DEPTH = 20

_WEBHOOK_URL_RE = re.compile(r"(/api/webhook/)[^/?#\s]+")


def redact_url(url: str) -> str:
    """Hide the webhook id segment of an endpoint URL."""
    return _WEBHOOK_URL_RE.sub(r"\1<redacted>", url)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SENSITIVE_VALUE_KEYS or lowered.endswith(_SENSITIVE_SUFFIXES)


def _clip(text: str, limit: int) -> str:
    text = redact_url(text)
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* that is safe to put in a debug log.

    Mappings keep their keys but lose the values of credential and
    location keys.  Pydantic models (registrations, records) are dumped
    first.  Strings are scrubbed of webhook ids and clipped to
    *max_string* characters.
    """

    def walk(item: Any, depth: int) -> Any:
        if depth > _MAX_DEPTH:
            return "<max-depth>"
        if isinstance(item, BaseModel):
            item = item.model_dump(exclude_none=True)
        if item is None or isinstance(item, (bool, int, float)):
            return item
        if isinstance(item, str):
            return _clip(item, max_string)
        if isinstance(item, (bytes, bytearray)):
            return f"<bytes:{len(item)}b>"
        if isinstance(item, Mapping):
            return {
                str(key): "<redacted>" if _is_sensitive(str(key)) else walk(child, depth + 1)
                for key, child in item.items()
            }
        if isinstance(item, Sequence):
            return [walk(child, depth + 1) for child in item]
        return repr(item)

    return walk(value, 0)
