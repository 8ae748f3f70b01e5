"""pyrevenew - Async purchase tracking SDK for the ReveNew analytics backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrevenew")
except PackageNotFoundError:
    __version__ = "0+local"

from pyrevenew.client import EventLogClient
from pyrevenew.commerce import CommerceLayer
from pyrevenew.config import RevenewConfig
from pyrevenew.exceptions import (
    CommerceError,
    ConflictError,
    DecodeError,
    InvalidUrlError,
    NoResponseError,
    NotFoundError,
    RevenewConfigError,
    RevenewError,
    RevenewLogError,
    UnauthorizedError,
    UnexpectedStatusError,
    UnknownLogError,
)
from pyrevenew.manager import PurchaseManager
from pyrevenew.models import (
    DownloadEvent,
    IntroductoryOffer,
    LogResponse,
    PaymentMode,
    PeriodUnit,
    Product,
    ProductKind,
    PurchaseEvent,
    PurchaseOutcome,
    PurchaseResult,
    StoreEnvironment,
    SubscriptionInfo,
    SubscriptionPeriod,
    SubscriptionState,
    Transaction,
    VerificationResult,
)
from pyrevenew.state import PurchaseState
from pyrevenew.storage import Identity, JsonFileKeyValueStore, MemoryKeyValueStore

__all__ = [
    "__version__",
    "CommerceError",
    "CommerceLayer",
    "ConflictError",
    "DecodeError",
    "DownloadEvent",
    "EventLogClient",
    "Identity",
    "IntroductoryOffer",
    "InvalidUrlError",
    "JsonFileKeyValueStore",
    "LogResponse",
    "MemoryKeyValueStore",
    "NoResponseError",
    "NotFoundError",
    "PaymentMode",
    "PeriodUnit",
    "Product",
    "ProductKind",
    "PurchaseEvent",
    "PurchaseManager",
    "PurchaseOutcome",
    "PurchaseResult",
    "PurchaseState",
    "RevenewConfig",
    "RevenewConfigError",
    "RevenewError",
    "RevenewLogError",
    "StoreEnvironment",
    "SubscriptionInfo",
    "SubscriptionPeriod",
    "SubscriptionState",
    "Transaction",
    "UnauthorizedError",
    "UnexpectedStatusError",
    "UnknownLogError",
    "VerificationResult",
]
