"""Long-lived observation of the store's transaction update stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from pyrevenew.commerce import CommerceLayer
from pyrevenew.models.product import Product
from pyrevenew.models.transaction import SubscriptionState, Transaction, VerificationResult
from pyrevenew.tracking.classifier import ClassifiedEvent
from pyrevenew.tracking.recorder import TransactionRecorder

_logger = logging.getLogger(__name__)

ProductLookup = Callable[[str], Product | None]
LoggedCallback = Callable[[ClassifiedEvent], Awaitable[None]]


class ObservationOutcome(StrEnum):
    UNVERIFIED = "unverified"
    UNKNOWN_PRODUCT = "unknown_product"
    REVOKED = "revoked"
    DUPLICATE = "duplicate"
    LOGGED = "logged"


class TransactionObserver:
    """Consumes ``CommerceLayer.transaction_updates()`` on one background task.

    Updates are handled strictly one at a time in delivery order.  Every
    verified transaction is finished with the store, whether or not it was
    reported; unverified ones are left alone.
    """

    def __init__(
        self,
        commerce: CommerceLayer,
        recorder: TransactionRecorder,
        *,
        product_lookup: ProductLookup,
        on_logged: LoggedCallback | None = None,
    ) -> None:
        self._commerce = commerce
        self._recorder = recorder
        self._product_lookup = product_lookup
        self._on_logged = on_logged
        self._task: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pyrevenew-transaction-observer")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        self._stopping = True
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            _logger.warning("Transaction observer ended with an error", exc_info=True)

    async def _run(self) -> None:
        stream = self._commerce.transaction_updates()
        try:
            async for update in stream:
                if self._stopping:
                    break
                try:
                    await self.process(update)
                except Exception:
                    _logger.warning(
                        "Failed to process transaction %s",
                        update.transaction.id,
                        exc_info=True,
                    )
            else:
                _logger.debug("Transaction update stream ended")
        except Exception:
            _logger.warning("Transaction update stream failed; observation stopped", exc_info=True)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                with contextlib.suppress(Exception):
                    await aclose()

    async def process(self, update: VerificationResult) -> ObservationOutcome:
        """Handle one update from the stream."""
        transaction = update.payload_value
        if transaction is None:
            _logger.info(
                "Skipping unverified transaction %s: %s",
                update.transaction.id,
                update.reason or "no reason given",
            )
            return ObservationOutcome.UNVERIFIED

        try:
            outcome = await self._handle(transaction)
        except Exception:
            await self._commerce.finish(transaction)
            raise
        await self._commerce.finish(transaction)
        return outcome

    async def _handle(self, transaction: Transaction) -> ObservationOutcome:
        product = self._product_lookup(transaction.product_id)
        if product is None:
            # Catalog not fetched yet, or product not tracked.
            _logger.debug("No product %s in catalog for transaction %s", transaction.product_id, transaction.id)
            return ObservationOutcome.UNKNOWN_PRODUCT

        state = await self._commerce.subscription_state(transaction)
        if state == SubscriptionState.REVOKED:
            _logger.info("Skipping revoked transaction %s", transaction.id)
            return ObservationOutcome.REVOKED

        classified = self._recorder.record(transaction, product)
        if classified is None:
            return ObservationOutcome.DUPLICATE

        if self._on_logged is not None:
            try:
                await self._on_logged(classified)
            except Exception:
                _logger.debug("on_logged callback failed", exc_info=True)
        return ObservationOutcome.LOGGED
