"""Async client for the ReveNew analytics backend."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyrevenew._api import events as _events_api
from pyrevenew._transport import HttpTransport, Transport
from pyrevenew.config import RevenewConfig
from pyrevenew.exceptions import RevenewError
from pyrevenew.models.events import DownloadEvent, LogResponse, PurchaseEvent

_logger = logging.getLogger(__name__)


class EventLogClient:
    """Stateless client that POSTs purchase and download events.

    Usage::

        async with EventLogClient(config) as client:
            await client.log_download(DownloadEvent(user_id=uid, app_name="Demo"))

    Every call is a single attempt: failures raise a
    :class:`~pyrevenew.exceptions.RevenewLogError` subclass and are never
    retried.
    """

    def __init__(
        self,
        config: RevenewConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

    async def __aenter__(self) -> EventLogClient:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session and transport if not supplied."""
        if self._transport is not None:
            return
        if self._http_session is None:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
            self._http_session = aiohttp.ClientSession(timeout=timeout)
        self._transport = HttpTransport(self._config, self._http_session)

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise RevenewError("Client not initialized. Use 'async with EventLogClient(...) as client:'")
        return self._transport

    async def log_purchase(self, event: PurchaseEvent) -> LogResponse:
        """Send a purchase event."""
        response = await _events_api.log_purchase(self._require_transport(), event)
        _logger.debug("Purchase logged app=%s kind=%s trial=%s", event.app_name, event.kind, event.is_trial)
        return response

    async def log_download(self, event: DownloadEvent) -> LogResponse:
        """Send a first-download event."""
        response = await _events_api.log_download(self._require_transport(), event)
        _logger.debug("Download logged app=%s", event.app_name)
        return response
