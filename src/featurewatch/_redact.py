"""Scrub device connection data before it reaches DEBUG logs.

Push endpoints are capability URLs: anyone holding one can push to the
device. Together with the subscriber key and auth secret they are kept out of
log output; only the push service origin stays visible.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

_MASK = "<redacted>"
_MAX_DEPTH = 8

_SECRET_FIELDS: frozenset[str] = frozenset(
    {"key", "authsecret", "auth_secret", "authorization", "crypto-key", "encryption"}
)
_ENDPOINT_FIELDS: frozenset[str] = frozenset({"endpoint"})


def _endpoint_origin(endpoint: str) -> str:
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.netloc:
        return _MASK
    return f"{parts.scheme}://{parts.netloc}/{_MASK}"


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...(+{len(text) - limit} chars)"


def _scrub_field(name: str, value: Any, limit: int, depth: int) -> Any:
    lowered = name.lower()
    # Empty secrets are left as-is.
    if lowered in _SECRET_FIELDS:
        return _MASK if value else value
    if lowered in _ENDPOINT_FIELDS and isinstance(value, str) and value:
        return _endpoint_origin(value)
    return _scrub(value, limit, depth + 1)


def _scrub(value: Any, limit: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "..."
    if isinstance(value, str):
        return _clip(value, limit)
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, Mapping):
        return {str(name): _scrub_field(str(name), item, limit, depth) for name, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_scrub(item, limit, depth + 1) for item in value]
    return value


def redact_for_log(value: Any, *, max_string: int = 200) -> Any:
    """Copy of *value* safe to log: secrets masked, endpoints cut to their origin."""
    return _scrub(value, max_string, 0)
