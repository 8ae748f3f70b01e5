"""Analytics log endpoints.

Endpoints:
  - /api/v1/log-purchase
  - /api/v1/log-download
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from pyrevenew._constants import LOG_DOWNLOAD_PATH, LOG_PURCHASE_PATH
from pyrevenew._transport import Transport
from pyrevenew.exceptions import DecodeError
from pyrevenew.models.events import DownloadEvent, LogResponse, PurchaseEvent


def _parse_log_response(status: int, body: dict[str, Any], path: str) -> LogResponse:
    try:
        return LogResponse.model_validate(body)
    except ValidationError as exc:
        raise DecodeError(
            f"Unexpected response shape from {path}: {exc}",
            status_code=status,
            endpoint=path,
        ) from exc


async def log_purchase(transport: Transport, event: PurchaseEvent) -> LogResponse:
    """Report one purchase."""
    status, body = await transport.post_json(LOG_PURCHASE_PATH, event.to_wire())
    return _parse_log_response(status, body, LOG_PURCHASE_PATH)


async def log_download(transport: Transport, event: DownloadEvent) -> LogResponse:
    """Report the first launch of an install."""
    status, body = await transport.post_json(LOG_DOWNLOAD_PATH, event.to_wire())
    return _parse_log_response(status, body, LOG_DOWNLOAD_PATH)
