"""Transaction models as delivered by the commerce layer."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pyrevenew.models._base import OptionalStoreTimestamp, RevenewBaseModel, StoreTimestamp
from pyrevenew.models.product import ProductKind


class StoreEnvironment(StrEnum):
    PRODUCTION = "production"
    SANDBOX = "sandbox"
    XCODE = "xcode"


class SubscriptionState(StrEnum):
    """Renewal state of the subscription group a transaction belongs to."""

    SUBSCRIBED = "subscribed"
    EXPIRED = "expired"
    IN_BILLING_RETRY = "in_billing_retry"
    IN_GRACE_PERIOD = "in_grace_period"
    REVOKED = "revoked"


class Transaction(RevenewBaseModel):
    """A store transaction.

    ``original_purchase_date`` equals ``purchase_date`` only for the first
    transaction of a subscription group; renewals keep the original date of
    that first purchase.
    """

    id: str
    """Unique, store-assigned transaction id."""

    original_id: str | None = None
    """Id of the first transaction of the subscription group."""

    product_id: str

    purchase_date: StoreTimestamp

    original_purchase_date: StoreTimestamp

    revocation_date: OptionalStoreTimestamp = None
    """Set when the purchase was refunded or revoked."""

    expiration_date: OptionalStoreTimestamp = None
    """Set for expiring purchases (subscriptions)."""

    storefront: str | None = None
    """Storefront country code, when the platform exposes it."""

    environment: StoreEnvironment = StoreEnvironment.PRODUCTION

    product_kind: ProductKind | None = None

    @field_validator("id", "original_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Stores commonly hand out numeric ids; they are compared as text.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def is_sandbox(self) -> bool:
        return self.environment != StoreEnvironment.PRODUCTION

    def is_active(self, now: datetime) -> bool:
        """Not revoked and not expired at *now*."""
        if self.revocation_date is not None:
            return False
        return self.expiration_date is None or self.expiration_date > now


class VerificationResult(BaseModel):
    """A transaction together with the platform's verification verdict."""

    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    verified: bool
    reason: str | None = None
    """Why verification failed, when it did."""

    @classmethod
    def verified_result(cls, transaction: Transaction) -> VerificationResult:
        return cls(transaction=transaction, verified=True)

    @classmethod
    def unverified_result(cls, transaction: Transaction, reason: str) -> VerificationResult:
        return cls(transaction=transaction, verified=False, reason=reason)

    @property
    def payload_value(self) -> Transaction | None:
        """The transaction if verified, ``None`` otherwise."""
        return self.transaction if self.verified else None

    @property
    def unsafe_payload_value(self) -> Transaction:
        """The transaction regardless of verification."""
        return self.transaction
