"""High-level purchase tracking facade."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from pyrevenew._constants import PURCHASE_EXCEPTION_MESSAGE, PURCHASE_FAILED_MESSAGE
from pyrevenew.client import EventLogClient
from pyrevenew.commerce import CommerceLayer
from pyrevenew.config import RevenewConfig
from pyrevenew.exceptions import RevenewError
from pyrevenew.models.events import DownloadEvent
from pyrevenew.models.product import Product
from pyrevenew.models.purchase import PurchaseOutcome, PurchaseResult
from pyrevenew.models.transaction import Transaction
from pyrevenew.state import PurchaseState
from pyrevenew.storage.identity import Identity, IdentityStore, LastLoggedTransactionStore
from pyrevenew.storage.kv import KeyValueStore, open_store
from pyrevenew.tracking.classifier import ClassifiedEvent, TransactionClassifier
from pyrevenew.tracking.dispatch import ErrorCallback, EventSender, LogDispatcher
from pyrevenew.tracking.entitlements import SubscriptionStatusEvaluator
from pyrevenew.tracking.observer import TransactionObserver
from pyrevenew.tracking.recorder import TransactionRecorder

_logger = logging.getLogger(__name__)


class PurchaseManager:
    """Tracks purchases made through a :class:`~pyrevenew.commerce.CommerceLayer`.

    Usage::

        config = RevenewConfig(app_name="Demo", host="192.168.1.1", port=3022,
                               tracked_product_ids=("pro_monthly",))
        async with PurchaseManager(config, commerce) as manager:
            await manager.fetch_products()
            product = await manager.purchase(manager.state.products[0])

    On start the manager reports the first download of a fresh install,
    starts observing transaction updates and derives ``is_subscribed``.
    Purchases never raise: failures end up in ``state.error``.
    """

    def __init__(
        self,
        config: RevenewConfig,
        commerce: CommerceLayer,
        *,
        storage: KeyValueStore | None = None,
        log_client: EventSender | None = None,
        on_log_error: ErrorCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._commerce = commerce
        self._tracked_product_ids: tuple[str, ...] = tuple(config.tracked_product_ids)

        self.state = PurchaseState()

        store = storage if storage is not None else open_store(config.state_path)
        self._identity_store = IdentityStore(store)
        self._last_logged = LastLoggedTransactionStore(store)
        self._identity: Identity | None = None

        self._owned_client: EventLogClient | None = None
        if log_client is None:
            self._owned_client = EventLogClient(config)
            log_client = self._owned_client
        self._dispatcher = LogDispatcher(log_client, on_error=on_log_error)

        self._recorder = TransactionRecorder(
            TransactionClassifier(config.app_name),
            self._dispatcher,
            self._last_logged,
        )
        self._evaluator = SubscriptionStatusEvaluator(clock=clock) if clock is not None else SubscriptionStatusEvaluator()
        self._observer = TransactionObserver(
            commerce,
            self._recorder,
            product_lookup=self.state.product,
            on_logged=self._after_logged,
        )
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PurchaseManager:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.state.reopen()
        if self._owned_client is not None:
            await self._owned_client.open()
        self._dispatcher.start()
        self._observer.start()
        self._log_first_download()
        await self.refresh_subscription_status()

    async def close(self) -> None:
        """Stop observing and logging; no state callback fires afterwards."""
        try:
            await self._observer.stop()
        finally:
            try:
                await self._dispatcher.stop()
            finally:
                self.state.close()
                self._started = False
                if self._owned_client is not None:
                    await self._owned_client.close()

    async def flush(self) -> None:
        """Wait until queued analytics events have been attempted."""
        await self._dispatcher.flush()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def tracked_product_ids(self) -> tuple[str, ...]:
        return self._tracked_product_ids

    @property
    def identity(self) -> Identity | None:
        """Identity resolved on start, ``None`` before."""
        return self._identity

    @property
    def last_logged_transaction_id(self) -> str | None:
        return self._recorder.last_logged_id

    @property
    def observing(self) -> bool:
        return self._observer.running

    def set_tracked_product_ids(self, product_ids: Iterable[str]) -> None:
        """Replace the product ids used for fetching and entitlement checks."""
        self._tracked_product_ids = tuple(dict.fromkeys(product_ids))

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def fetch_products(self) -> tuple[Product, ...]:
        """Fetch the tracked products into ``state.products``."""
        self.state.set_loading(True)
        try:
            products = await self._commerce.fetch_products(list(self._tracked_product_ids))
        except Exception:
            _logger.warning("Error fetching products", exc_info=True)
        else:
            self.state.set_products(products)
        finally:
            self.state.set_loading(False)
        return self.state.products

    # ------------------------------------------------------------------
    # Purchase flow
    # ------------------------------------------------------------------

    async def purchase(self, product: Product) -> Product | None:
        """Buy *product*; return it on success, ``None`` otherwise.

        Pending approval, cancellation and unknown outcomes all return
        ``None``.  Only unknown outcomes and failures set ``state.error``.
        """
        self.state.set_error(None)
        self.state.set_loading(True)
        try:
            result = await self._commerce.purchase(product)
            return await self._complete_purchase(product, result)
        except Exception as exc:
            _logger.warning("Failed to purchase %s", product.id, exc_info=True)
            self.state.set_error(PURCHASE_EXCEPTION_MESSAGE.format(error=exc))
            return None
        finally:
            self.state.set_loading(False)

    async def _complete_purchase(self, product: Product, result: PurchaseResult) -> Product | None:
        if result.outcome == PurchaseOutcome.SUCCESS:
            assert result.verification is not None  # noqa: S101
            verification = result.verification
            transaction = verification.unsafe_payload_value
            if not verification.verified:
                # Still a completed purchase (e.g. on a jailbroken device).
                _logger.warning(
                    "Unverified purchase of %s: %s",
                    product.id,
                    verification.reason or "no reason given",
                )
            await self._commerce.finish(transaction)
            classified = self._recorder.record(transaction, product)
            if classified is not None:
                await self.refresh_subscription_status()
            return product

        if result.outcome == PurchaseOutcome.PENDING:
            _logger.info("Purchase of %s is awaiting approval", product.id)
            return None

        if result.outcome == PurchaseOutcome.USER_CANCELLED:
            _logger.info("Purchase of %s cancelled by the user", product.id)
            return None

        _logger.warning("Purchase of %s ended with an unknown outcome", product.id)
        self.state.set_error(PURCHASE_FAILED_MESSAGE)
        return None

    async def restore_purchase(self) -> bool:
        """Sync with the store and report whether a tracked entitlement is active."""
        self.state.set_loading(True)
        try:
            await self._commerce.sync()
            entitlements = await self._verified_entitlements()
        except Exception:
            _logger.warning("Restore purchase failed", exc_info=True)
            return False
        else:
            active = self._evaluator.evaluate(entitlements, self._tracked_product_ids)
            self.state.set_subscribed(active)
            return active
        finally:
            self.state.set_loading(False)

    def log_trial_or_conversion(
        self,
        transaction: Transaction,
        product: Product,
        *,
        is_trial: bool,
        trial_period: str | None = None,
    ) -> None:
        """Report a trial start (``is_trial=True``) or a conversion explicitly.

        For apps that know better than the date heuristic.  Not deduplicated.
        """
        self._recorder.record_override(
            transaction,
            product,
            app_name=self._config.app_name,
            is_trial=is_trial,
            trial_period=trial_period,
        )

    # ------------------------------------------------------------------
    # Entitlements
    # ------------------------------------------------------------------

    async def refresh_subscription_status(self) -> bool:
        """Re-derive ``state.is_subscribed`` from the current entitlements.

        The store is synced first; if that fails the user is treated as not
        subscribed.
        """
        try:
            await self._commerce.sync()
            entitlements = await self._verified_entitlements()
        except Exception:
            _logger.info("Could not refresh entitlements; assuming not subscribed", exc_info=True)
            self.state.set_subscribed(False)
            return False

        active = self._evaluator.evaluate(entitlements, self._tracked_product_ids)
        self.state.set_subscribed(active)
        return active

    async def _verified_entitlements(self) -> list[Transaction]:
        results = await self._commerce.current_entitlements()
        return [tx for tx in (result.payload_value for result in results) if tx is not None]

    async def _after_logged(self, _classified: ClassifiedEvent) -> None:
        await self.refresh_subscription_status()

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    def _log_first_download(self) -> None:
        try:
            identity = self._identity_store.get_or_create_identity()
        except RevenewError:
            _logger.warning("Could not resolve device identity", exc_info=True)
            return
        self._identity = identity
        if identity.is_first_launch and self._config.log_first_download:
            self._dispatcher.submit(DownloadEvent(user_id=identity.user_id, app_name=self._config.app_name))
