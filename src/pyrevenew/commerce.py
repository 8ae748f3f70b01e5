"""Interface to the platform commerce layer.

The SDK never talks to a store directly.  The embedding application hands
it an object implementing :class:`CommerceLayer`, which wraps the
platform's product lookup, transaction feed, entitlement snapshot and
purchase sheet.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from pyrevenew.models.product import Product
from pyrevenew.models.purchase import PurchaseResult
from pyrevenew.models.transaction import SubscriptionState, Transaction, VerificationResult


class CommerceLayer(Protocol):
    async def fetch_products(self, product_ids: Sequence[str]) -> list[Product]:
        """Look up products by id; unknown ids are simply absent."""
        ...

    def transaction_updates(self) -> AsyncIterator[VerificationResult]:
        """Live, ordered stream of transaction updates for the process lifetime."""
        ...

    async def current_entitlements(self) -> list[VerificationResult]:
        """Snapshot of the transactions the user is currently entitled to."""
        ...

    async def purchase(self, product: Product) -> PurchaseResult:
        """Present the purchase flow for *product*.

        May raise; :class:`pyrevenew.PurchaseManager` converts failures into
        its ``error`` field.
        """
        ...

    async def sync(self) -> None:
        """Synchronise transactions with the store. Raises on failure."""
        ...

    async def finish(self, transaction: Transaction) -> None:
        """Acknowledge *transaction* with the store."""
        ...

    async def subscription_state(self, transaction: Transaction) -> SubscriptionState | None:
        """State of the subscription group of *transaction*.

        ``None`` for products that are not subscriptions.
        """
        ...
