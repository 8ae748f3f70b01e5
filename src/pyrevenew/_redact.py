"""Helpers for safe debug logging.

Log payloads carry the anonymous device identity.  It is not a secret, but
it is stable for the lifetime of an install, so DEBUG logs only show a short
suffix that is still enough to correlate lines of the same device.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

_IDENTITY_KEYS: frozenset[str] = frozenset({"userid", "user_id"})
_SECRET_KEYS: frozenset[str] = frozenset({"authorization", "cookie", "appaccounttoken"})

_MAX_DEPTH = 20


def mask_identifier(value: str, *, keep: int = 4) -> str:
    """Mask all but the last *keep* characters of an identifier."""
    if len(value) <= keep:
        return "<redacted>"
    return f"<redacted:…{value[-keep:]}>"


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, Decimal):
        return str(value)

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _SECRET_KEYS:
                redacted[key] = "<redacted>"
            elif lowered in _IDENTITY_KEYS and isinstance(v, str):
                redacted[key] = mask_identifier(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    return repr(value)
