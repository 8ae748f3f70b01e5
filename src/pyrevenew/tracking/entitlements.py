"""Subscription entitlement evaluation.

``is_subscribed`` is never stored as a source of truth: it is re-derived
from the current entitlement snapshot every time the store reports a change.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from datetime import UTC, datetime

from pyrevenew.models.transaction import Transaction


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SubscriptionStatusEvaluator:
    """Answers "is the user currently entitled" for a set of tracked products."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def evaluate(
        self,
        entitlements: Iterable[Transaction],
        tracked_product_ids: Collection[str],
        *,
        now: datetime | None = None,
    ) -> bool:
        """True if any tracked entitlement is neither revoked nor expired."""
        moment = now if now is not None else self._clock()
        for transaction in entitlements:
            if transaction.product_id not in tracked_product_ids:
                continue
            if transaction.is_active(moment):
                return True
        return False
