from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from pyrevenew.exceptions import RevenewLogError
from pyrevenew.models.events import DownloadEvent, LogResponse, PurchaseEvent
from pyrevenew.models.product import (
    IntroductoryOffer,
    PaymentMode,
    PeriodUnit,
    Product,
    ProductKind,
    SubscriptionInfo,
    SubscriptionPeriod,
)
from pyrevenew.models.purchase import PurchaseResult
from pyrevenew.models.transaction import SubscriptionState, Transaction, VerificationResult

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_product(
    product_id: str = "pro_monthly",
    *,
    trial: PaymentMode | None = PaymentMode.FREE_TRIAL,
    trial_value: int = 7,
    trial_unit: PeriodUnit = PeriodUnit.DAY,
    kind: ProductKind = ProductKind.AUTO_RENEWABLE,
) -> Product:
    subscription: SubscriptionInfo | None = None
    if kind == ProductKind.AUTO_RENEWABLE:
        offer = None
        if trial is not None:
            offer = IntroductoryOffer(
                payment_mode=trial,
                period=SubscriptionPeriod(value=trial_value, unit=trial_unit),
            )
        subscription = SubscriptionInfo(
            group_id="group-1",
            period=SubscriptionPeriod(value=1, unit=PeriodUnit.MONTH),
            introductory_offer=offer,
        )
    return Product(
        id=product_id,
        display_name="Pro",
        price=Decimal("4.99"),
        display_price="€4.99",
        currency_code="EUR",
        kind=kind,
        subscription=subscription,
    )


def make_transaction(
    transaction_id: str = "1001",
    product_id: str = "pro_monthly",
    *,
    purchase_date: datetime = NOW,
    original_purchase_date: datetime | None = None,
    expiration_date: datetime | None = None,
    revocation_date: datetime | None = None,
    storefront: str | None = "NLD",
    environment: str = "sandbox",
) -> Transaction:
    return Transaction(
        id=transaction_id,
        product_id=product_id,
        purchase_date=purchase_date,
        original_purchase_date=original_purchase_date if original_purchase_date is not None else purchase_date,
        expiration_date=expiration_date,
        revocation_date=revocation_date,
        storefront=storefront,
        environment=environment,
    )


@dataclass
class RecordingSender:
    """EventSender double that records every attempt."""

    purchases: list[PurchaseEvent] = field(default_factory=list)
    downloads: list[DownloadEvent] = field(default_factory=list)
    error: Exception | None = None
    delay: float = 0.0

    @property
    def attempts(self) -> int:
        return len(self.purchases) + len(self.downloads)

    async def _finish(self) -> LogResponse:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LogResponse(success=True)

    async def log_purchase(self, event: PurchaseEvent) -> LogResponse:
        self.purchases.append(event)
        return await self._finish()

    async def log_download(self, event: DownloadEvent) -> LogResponse:
        self.downloads.append(event)
        return await self._finish()


@dataclass
class FakeCommerce:
    """In-memory CommerceLayer."""

    products: list[Product] = field(default_factory=list)
    entitlements: list[VerificationResult] = field(default_factory=list)
    purchase_result: PurchaseResult | None = None
    purchase_error: Exception | None = None
    fetch_error: Exception | None = None
    sync_error: Exception | None = None
    subscription_states: dict[str, SubscriptionState] = field(default_factory=dict)
    finished: list[str] = field(default_factory=list)
    sync_calls: int = 0
    fetched_ids: list[list[str]] = field(default_factory=list)
    stream_closed: bool = False
    _updates: asyncio.Queue[VerificationResult] = field(default_factory=asyncio.Queue)

    def push(self, update: VerificationResult) -> None:
        self._updates.put_nowait(update)

    async def fetch_products(self, product_ids: Sequence[str]) -> list[Product]:
        self.fetched_ids.append(list(product_ids))
        if self.fetch_error is not None:
            raise self.fetch_error
        return [product for product in self.products if product.id in product_ids]

    async def transaction_updates(self) -> AsyncIterator[VerificationResult]:
        try:
            while True:
                yield await self._updates.get()
        finally:
            self.stream_closed = True

    async def current_entitlements(self) -> list[VerificationResult]:
        return list(self.entitlements)

    async def purchase(self, product: Product) -> PurchaseResult:
        if self.purchase_error is not None:
            raise self.purchase_error
        assert self.purchase_result is not None
        return self.purchase_result

    async def sync(self) -> None:
        self.sync_calls += 1
        if self.sync_error is not None:
            raise self.sync_error

    async def finish(self, transaction: Transaction) -> None:
        self.finished.append(transaction.id)

    async def subscription_state(self, transaction: Transaction) -> SubscriptionState | None:
        return self.subscription_states.get(transaction.id, SubscriptionState.SUBSCRIBED)


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll *predicate* on the running loop until it holds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def commerce() -> FakeCommerce:
    return FakeCommerce(products=[make_product()])


@pytest.fixture
def thirty_days_ago() -> datetime:
    return NOW - timedelta(days=30)


def log_error_collector() -> tuple[list[tuple[Any, RevenewLogError]], Callable[[Any, RevenewLogError], None]]:
    errors: list[tuple[Any, RevenewLogError]] = []

    def _collect(event: Any, error: RevenewLogError) -> None:
        errors.append((event, error))

    return errors, _collect
