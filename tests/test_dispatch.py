from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import pytest
from conftest import RecordingSender, log_error_collector

from pyrevenew.exceptions import UnauthorizedError, UnknownLogError
from pyrevenew.models.events import DownloadEvent, PurchaseEvent
from pyrevenew.tracking.dispatch import LogDispatcher


def _purchase(store_front: str = "NLD") -> PurchaseEvent:
    return PurchaseEvent(
        currency_code="EUR",
        price=Decimal("1.99"),
        price_formatted="€1.99",
        kind="consumable",
        is_sandbox=True,
        app_name="Demo",
        store_front=store_front,
    )


@pytest.mark.asyncio
async def test_events_sent_in_submission_order(sender: RecordingSender) -> None:
    dispatcher = LogDispatcher(sender)
    dispatcher.start()

    assert dispatcher.submit(_purchase("A"))
    assert dispatcher.submit(DownloadEvent(user_id="U", app_name="Demo"))
    assert dispatcher.submit(_purchase("B"))
    await dispatcher.flush()

    assert [event.store_front for event in sender.purchases] == ["A", "B"]
    assert len(sender.downloads) == 1
    await dispatcher.stop()


@pytest.mark.asyncio
async def test_submit_does_not_wait_for_send() -> None:
    slow = RecordingSender(delay=10.0)
    dispatcher = LogDispatcher(slow)
    dispatcher.start()

    dispatcher.submit(_purchase())
    dispatcher.submit(_purchase())
    await asyncio.sleep(0)

    assert dispatcher.pending >= 1
    await dispatcher.stop()


@pytest.mark.asyncio
async def test_log_errors_are_contained(caplog: pytest.LogCaptureFixture) -> None:
    failing = RecordingSender(error=UnauthorizedError("HTTP 401", status_code=401, endpoint="/api/v1/log-purchase"))
    errors, collect = log_error_collector()
    dispatcher = LogDispatcher(failing, on_error=collect)
    dispatcher.start()

    with caplog.at_level(logging.WARNING, logger="pyrevenew.tracking.dispatch"):
        dispatcher.submit(_purchase())
        dispatcher.submit(_purchase("B"))
        await dispatcher.flush()

    # Both attempted once, no retry, worker still alive.
    assert failing.attempts == 2
    assert dispatcher.running
    assert [type(error) for _event, error in errors] == [UnauthorizedError, UnauthorizedError]
    assert "Session expired" in caplog.text
    await dispatcher.stop()


@pytest.mark.asyncio
async def test_unexpected_errors_become_unknown_log_error() -> None:
    failing = RecordingSender(error=RuntimeError("boom"))
    errors, collect = log_error_collector()
    dispatcher = LogDispatcher(failing, on_error=collect)
    dispatcher.start()

    dispatcher.submit(DownloadEvent(user_id="U", app_name="Demo"))
    await dispatcher.flush()

    assert len(errors) == 1
    error = errors[0][1]
    assert isinstance(error, UnknownLogError)
    assert isinstance(error.__cause__, RuntimeError)
    await dispatcher.stop()


@pytest.mark.asyncio
async def test_failing_error_callback_does_not_kill_worker(sender: RecordingSender) -> None:
    sender.error = UnauthorizedError("HTTP 401")

    def _explode(_event: object, _error: object) -> None:
        raise ValueError("callback bug")

    dispatcher = LogDispatcher(sender, on_error=_explode)
    dispatcher.start()
    dispatcher.submit(_purchase())
    dispatcher.submit(_purchase())
    await dispatcher.flush()

    assert sender.attempts == 2
    assert dispatcher.running
    await dispatcher.stop()


@pytest.mark.asyncio
async def test_stop_drops_pending_and_rejects_new_events() -> None:
    slow = RecordingSender(delay=10.0)
    dispatcher = LogDispatcher(slow)
    dispatcher.start()
    dispatcher.submit(_purchase())
    dispatcher.submit(_purchase())
    await asyncio.sleep(0)

    await dispatcher.stop()

    assert not dispatcher.running
    assert dispatcher.pending == 0
    assert dispatcher.submit(_purchase()) is False
    # flush on a stopped dispatcher returns immediately
    await asyncio.wait_for(dispatcher.flush(), timeout=0.5)


@pytest.mark.asyncio
async def test_events_queued_before_start_are_sent(sender: RecordingSender) -> None:
    dispatcher = LogDispatcher(sender)
    dispatcher.submit(DownloadEvent(user_id="U", app_name="Demo"))
    dispatcher.start()
    await dispatcher.flush()
    assert len(sender.downloads) == 1
    await dispatcher.stop()
