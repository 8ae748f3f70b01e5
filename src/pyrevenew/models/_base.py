"""Base model shared by store and wire models.

Every pyrevenew model inherits from :class:`RevenewBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase keys (the backend's wire
  format and the usual shape of store payloads) map to snake_case fields.
* Frozen instances; records handed over by the commerce layer are
  read-only to the SDK.

:data:`StoreTimestamp` coerces epoch seconds, epoch milliseconds, ISO
strings and naive datetimes to timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_store_timestamp(value: Any) -> datetime | None:
    """Convert a store timestamp to an aware UTC datetime.

    Returns ``None`` for ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("-").isdigit():
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
        value = int(text)
    ts = float(value)
    if abs(ts) >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


StoreTimestamp = Annotated[datetime, BeforeValidator(parse_store_timestamp)]
"""Required timestamp, coerced to an aware UTC datetime."""

OptionalStoreTimestamp = Annotated[datetime | None, BeforeValidator(parse_store_timestamp)]
"""Optional timestamp, coerced to an aware UTC datetime."""


class RevenewBaseModel(BaseModel):
    """Base for pyrevenew models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
