"""Data models for products, transactions and analytics events."""

from pyrevenew.models._base import RevenewBaseModel, StoreTimestamp, parse_store_timestamp
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
from pyrevenew.models.purchase import PurchaseOutcome, PurchaseResult
from pyrevenew.models.transaction import (
    StoreEnvironment,
    SubscriptionState,
    Transaction,
    VerificationResult,
)

__all__ = [
    "DownloadEvent",
    "IntroductoryOffer",
    "LogResponse",
    "PaymentMode",
    "PeriodUnit",
    "Product",
    "ProductKind",
    "PurchaseEvent",
    "PurchaseOutcome",
    "PurchaseResult",
    "RevenewBaseModel",
    "StoreEnvironment",
    "StoreTimestamp",
    "SubscriptionInfo",
    "SubscriptionPeriod",
    "SubscriptionState",
    "Transaction",
    "VerificationResult",
    "parse_store_timestamp",
]
