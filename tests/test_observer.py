"""Tests for the transaction observation loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import timedelta

import pytest
from conftest import NOW, FakeCommerce, RecordingSender, make_product, make_transaction, wait_until

from pyrevenew.models.product import ProductKind
from pyrevenew.models.transaction import SubscriptionState, VerificationResult
from pyrevenew.state import PurchaseState
from pyrevenew.storage import LastLoggedTransactionStore, MemoryKeyValueStore
from pyrevenew.tracking import (
    ClassifiedEvent,
    LogDispatcher,
    ObservationOutcome,
    TransactionClassifier,
    TransactionObserver,
    TransactionRecorder,
)


class _Harness:
    def __init__(self, commerce: FakeCommerce, sender: RecordingSender) -> None:
        self.commerce = commerce
        self.sender = sender
        self.state = PurchaseState()
        self.state.set_products(commerce.products)
        self.last_logged = LastLoggedTransactionStore(MemoryKeyValueStore())
        self.dispatcher = LogDispatcher(sender)
        self.logged: list[ClassifiedEvent] = []
        self.recorder = TransactionRecorder(TransactionClassifier("Demo"), self.dispatcher, self.last_logged)
        self.observer = TransactionObserver(
            commerce,
            self.recorder,
            product_lookup=self.state.product,
            on_logged=self._on_logged,
        )

    async def _on_logged(self, classified: ClassifiedEvent) -> None:
        self.logged.append(classified)

    async def __aenter__(self) -> _Harness:
        self.dispatcher.start()
        self.observer.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.observer.stop()
        await self.dispatcher.stop()


def _verified(transaction_id: str, **kwargs: object) -> VerificationResult:
    return VerificationResult.verified_result(make_transaction(transaction_id, **kwargs))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_trial_start_is_logged(commerce: FakeCommerce, sender: RecordingSender) -> None:
    async with _Harness(commerce, sender) as h:
        commerce.push(_verified("1001"))
        await wait_until(lambda: commerce.finished == ["1001"])
        await h.dispatcher.flush()

    assert len(sender.purchases) == 1
    assert sender.purchases[0].is_trial is True
    assert sender.purchases[0].trial_period == "7 days"
    assert h.last_logged.get() == "1001"
    assert [c.transaction_id for c in h.logged] == ["1001"]


@pytest.mark.asyncio
async def test_renewal_is_logged_as_paid(commerce: FakeCommerce, sender: RecordingSender) -> None:
    async with _Harness(commerce, sender) as h:
        commerce.push(_verified("1001"))
        commerce.push(_verified("1002", original_purchase_date=NOW - timedelta(days=30)))
        await wait_until(lambda: commerce.finished == ["1001", "1002"])
        await h.dispatcher.flush()

    assert [event.is_trial for event in sender.purchases] == [True, False]
    assert sender.purchases[1].trial_period is None
    assert h.last_logged.get() == "1002"


@pytest.mark.asyncio
async def test_duplicate_delivery_sends_nothing_twice(commerce: FakeCommerce, sender: RecordingSender) -> None:
    async with _Harness(commerce, sender) as h:
        commerce.push(_verified("1001"))
        commerce.push(_verified("1001"))
        await wait_until(lambda: commerce.finished == ["1001", "1001"])
        await h.dispatcher.flush()

    assert sender.attempts == 1
    assert len(h.logged) == 1


@pytest.mark.asyncio
async def test_unverified_is_skipped_and_not_finished(commerce: FakeCommerce, sender: RecordingSender) -> None:
    async with _Harness(commerce, sender) as h:
        commerce.push(VerificationResult.unverified_result(make_transaction("666"), "bad signature"))
        commerce.push(_verified("1001"))
        await wait_until(lambda: "1001" in commerce.finished)
        await h.dispatcher.flush()

    assert commerce.finished == ["1001"]
    assert sender.attempts == 1
    assert h.last_logged.get() == "1001"


@pytest.mark.asyncio
async def test_unknown_product_is_finished_but_not_logged(sender: RecordingSender) -> None:
    commerce = FakeCommerce(products=[])
    h = _Harness(commerce, sender)

    outcome = await h.observer.process(_verified("1001"))

    assert outcome == ObservationOutcome.UNKNOWN_PRODUCT
    assert commerce.finished == ["1001"]
    assert h.dispatcher.pending == 0
    assert h.last_logged.get() is None


@pytest.mark.asyncio
async def test_revoked_subscription_is_skipped(commerce: FakeCommerce, sender: RecordingSender) -> None:
    commerce.subscription_states["1001"] = SubscriptionState.REVOKED
    h = _Harness(commerce, sender)

    outcome = await h.observer.process(_verified("1001"))

    assert outcome == ObservationOutcome.REVOKED
    assert commerce.finished == ["1001"]
    assert h.last_logged.get() is None


@pytest.mark.asyncio
async def test_expired_subscription_state_is_still_logged(commerce: FakeCommerce, sender: RecordingSender) -> None:
    commerce.subscription_states["1001"] = SubscriptionState.EXPIRED
    h = _Harness(commerce, sender)

    assert await h.observer.process(_verified("1001")) == ObservationOutcome.LOGGED
    assert h.dispatcher.pending == 1


@pytest.mark.asyncio
async def test_non_subscription_product_is_logged(sender: RecordingSender) -> None:
    commerce = FakeCommerce(products=[make_product("coins", kind=ProductKind.CONSUMABLE)])
    h = _Harness(commerce, sender)

    async def _no_state(_tx: object) -> None:
        return None

    commerce.subscription_state = _no_state  # type: ignore[assignment,method-assign]
    outcome = await h.observer.process(_verified("5", product_id="coins"))

    assert outcome == ObservationOutcome.LOGGED
    assert commerce.finished == ["5"]


@pytest.mark.asyncio
async def test_failure_in_one_update_does_not_stop_the_loop(commerce: FakeCommerce, sender: RecordingSender) -> None:
    original_state = commerce.subscription_state

    async def _flaky(tx):  # type: ignore[no-untyped-def]
        if tx.id == "bad":
            raise RuntimeError("store hiccup")
        return await original_state(tx)

    commerce.subscription_state = _flaky  # type: ignore[method-assign]

    async with _Harness(commerce, sender) as h:
        commerce.push(_verified("bad"))
        commerce.push(_verified("1001"))
        await wait_until(lambda: commerce.finished == ["bad", "1001"])
        assert h.observer.running
        await h.dispatcher.flush()

    assert sender.attempts == 1
    assert h.last_logged.get() == "1001"


@pytest.mark.asyncio
async def test_log_failure_does_not_block_finish(commerce: FakeCommerce) -> None:
    failing = RecordingSender(error=RuntimeError("offline"), delay=10.0)
    async with _Harness(commerce, failing) as h:
        commerce.push(_verified("1001"))
        await wait_until(lambda: commerce.finished == ["1001"])
        assert h.last_logged.get() == "1001"


@pytest.mark.asyncio
async def test_stop_cancels_loop_and_closes_stream(commerce: FakeCommerce, sender: RecordingSender) -> None:
    h = _Harness(commerce, sender)
    async with h:
        # Let the loop start consuming the stream.
        await asyncio.sleep(0.01)

    assert not h.observer.running
    assert commerce.stream_closed is True

    # Updates delivered after teardown are never processed.
    commerce.push(_verified("1001"))
    await h.observer.stop()
    assert commerce.finished == []
    assert h.logged == []


class _DeadStream(FakeCommerce):
    async def transaction_updates(self) -> AsyncIterator[VerificationResult]:
        raise RuntimeError("stream died")
        yield  # makes this an async generator


class _NoStream(FakeCommerce):
    def transaction_updates(self) -> AsyncIterator[VerificationResult]:  # type: ignore[override]
        raise RuntimeError("store unavailable")


@pytest.mark.asyncio
async def test_failing_stream_is_logged_and_stop_is_clean(
    sender: RecordingSender, caplog: pytest.LogCaptureFixture
) -> None:
    commerce = _DeadStream(products=[make_product()])
    h = _Harness(commerce, sender)

    with caplog.at_level(logging.WARNING, logger="pyrevenew.tracking.observer"):
        async with h:
            await wait_until(lambda: not h.observer.running)

    assert "Transaction update stream failed" in caplog.text
    assert not h.dispatcher.running


@pytest.mark.asyncio
async def test_stop_after_observer_crashed_does_not_raise(
    sender: RecordingSender, caplog: pytest.LogCaptureFixture
) -> None:
    commerce = _NoStream(products=[make_product()])
    h = _Harness(commerce, sender)

    with caplog.at_level(logging.WARNING, logger="pyrevenew.tracking.observer"):
        async with h:
            await wait_until(lambda: not h.observer.running)

    assert "Transaction observer ended with an error" in caplog.text
    assert not h.dispatcher.running
