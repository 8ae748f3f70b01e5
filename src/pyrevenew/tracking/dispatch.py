"""Fire-and-forget delivery of analytics events.

Classification happens synchronously in the caller; transmission happens
here, on one worker task fed by a queue.  Nothing upstream waits for a
send, so logging latency or failure never delays transaction
acknowledgment or UI state.  Each event gets exactly one attempt.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Protocol

from pyrevenew.exceptions import RevenewLogError, UnknownLogError
from pyrevenew.models.events import DownloadEvent, LogResponse, PurchaseEvent

_logger = logging.getLogger(__name__)

LogEvent = PurchaseEvent | DownloadEvent

ErrorCallback = Callable[[LogEvent, RevenewLogError], None]


class EventSender(Protocol):
    async def log_purchase(self, event: PurchaseEvent) -> LogResponse:
        ...

    async def log_download(self, event: DownloadEvent) -> LogResponse:
        ...


class LogDispatcher:
    """Queue plus a dedicated worker that sends events in submission order."""

    def __init__(self, sender: EventSender, *, on_error: ErrorCallback | None = None) -> None:
        self._sender = sender
        self._on_error = on_error
        self._queue: asyncio.Queue[LogEvent] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._closed = False
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="pyrevenew-log-dispatcher")

    def submit(self, event: LogEvent) -> bool:
        """Queue *event* for delivery. Never blocks.

        Returns ``False`` if the dispatcher has been stopped.
        """
        if self._closed:
            _logger.debug("Dispatcher stopped; dropping %s", type(event).__name__)
            return False
        self._queue.put_nowait(event)
        return True

    async def flush(self) -> None:
        """Wait until every queued event has been attempted."""
        if not self.running:
            return
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the worker and drop anything still queued."""
        self._closed = True
        worker = self._worker
        self._worker = None
        if worker is not None:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            _logger.warning("Dropped %d unsent analytics event(s) on shutdown", dropped)

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._send(event)
            finally:
                self._queue.task_done()

    async def _send(self, event: LogEvent) -> None:
        try:
            if isinstance(event, PurchaseEvent):
                await self._sender.log_purchase(event)
            else:
                await self._sender.log_download(event)
        except RevenewLogError as exc:
            self._report(event, exc)
        except Exception as exc:
            error = UnknownLogError(f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            self._report(event, error)

    def _report(self, event: LogEvent, error: RevenewLogError) -> None:
        _logger.warning(
            "Failed to log %s (%s): %s",
            type(event).__name__,
            error.custom_message,
            error,
            exc_info=error,
        )
        if self._on_error is None:
            return
        try:
            self._on_error(event, error)
        except Exception:
            _logger.debug("on_error callback failed", exc_info=True)
