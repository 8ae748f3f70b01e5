"""Outcome of a user-initiated purchase."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator

from pyrevenew.models.transaction import VerificationResult


class PurchaseOutcome(StrEnum):
    SUCCESS = "success"
    PENDING = "pending"
    """Waiting on Ask to Buy or strong customer authentication."""
    USER_CANCELLED = "user_cancelled"
    UNKNOWN = "unknown"
    """A result the commerce layer could not map."""


class PurchaseResult(BaseModel):
    """What the commerce layer reports back from ``purchase(product)``."""

    model_config = ConfigDict(frozen=True)

    outcome: PurchaseOutcome
    verification: VerificationResult | None = None

    @model_validator(mode="after")
    def _success_carries_transaction(self) -> PurchaseResult:
        if self.outcome == PurchaseOutcome.SUCCESS and self.verification is None:
            raise ValueError("a successful purchase must carry its verification result")
        return self

    @classmethod
    def success(cls, verification: VerificationResult) -> PurchaseResult:
        return cls(outcome=PurchaseOutcome.SUCCESS, verification=verification)

    @classmethod
    def pending(cls) -> PurchaseResult:
        return cls(outcome=PurchaseOutcome.PENDING)

    @classmethod
    def user_cancelled(cls) -> PurchaseResult:
        return cls(outcome=PurchaseOutcome.USER_CANCELLED)

    @classmethod
    def unknown(cls) -> PurchaseResult:
        return cls(outcome=PurchaseOutcome.UNKNOWN)
