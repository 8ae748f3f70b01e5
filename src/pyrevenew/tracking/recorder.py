"""Classify, dispatch and remember one transaction.

Shared by the observation loop and the purchase flow.  :meth:`record` has
no suspension point, so within one event loop the read of the last logged
id, the dispatch and the write of the new id cannot interleave with another
caller.
"""

from __future__ import annotations

import logging

from pyrevenew.exceptions import RevenewError
from pyrevenew.models.product import Product
from pyrevenew.models.transaction import Transaction
from pyrevenew.storage.identity import LastLoggedTransactionStore
from pyrevenew.tracking.classifier import ClassifiedEvent, TransactionClassifier, build_purchase_event
from pyrevenew.tracking.dispatch import LogDispatcher

_logger = logging.getLogger(__name__)


class TransactionRecorder:
    def __init__(
        self,
        classifier: TransactionClassifier,
        dispatcher: LogDispatcher,
        last_logged: LastLoggedTransactionStore,
    ) -> None:
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._last_logged = last_logged

    @property
    def last_logged_id(self) -> str | None:
        return self._last_logged.get()

    def record(self, transaction: Transaction, product: Product) -> ClassifiedEvent | None:
        """Report *transaction* unless it was the last one reported.

        The new id is persisted as soon as the event is queued; a failed
        send does not roll it back.  If the dispatcher no longer accepts
        events nothing is persisted and ``None`` is returned, so the
        transaction is reported again once tracking restarts.  A failure to
        persist is logged and otherwise ignored.
        """
        classified = self._classifier.classify(transaction, product, self._last_logged.get())
        if classified is None:
            _logger.debug("Transaction %s already logged; skipping", transaction.id)
            return None

        if not self._dispatcher.submit(classified.event):
            _logger.warning("Tracking is stopped; transaction %s was not logged", transaction.id)
            return None

        try:
            self._last_logged.set(classified.transaction_id)
        except RevenewError:
            _logger.warning("Could not persist last logged transaction %s", transaction.id, exc_info=True)
        _logger.info(
            "Logged transaction %s product=%s trial=%s",
            transaction.id,
            product.id,
            classified.is_trial,
        )
        return classified

    def record_override(
        self,
        transaction: Transaction,
        product: Product,
        *,
        app_name: str,
        is_trial: bool,
        trial_period: str | None = None,
    ) -> None:
        """Report *transaction* with a caller-decided trial flag.

        Bypasses classification and deduplication; the last logged id is
        left untouched.
        """
        event = build_purchase_event(
            transaction,
            product,
            app_name=app_name,
            is_trial=is_trial,
            trial_period=trial_period,
        )
        self._dispatcher.submit(event)
