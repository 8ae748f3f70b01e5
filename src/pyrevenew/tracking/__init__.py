"""Transaction tracking core.

Pure decision logic (classification, entitlement evaluation) plus the two
background tasks that act on it: the transaction observer and the log
dispatcher.
"""

from pyrevenew.tracking.classifier import ClassifiedEvent, TransactionClassifier
from pyrevenew.tracking.dispatch import LogDispatcher
from pyrevenew.tracking.entitlements import SubscriptionStatusEvaluator
from pyrevenew.tracking.observer import ObservationOutcome, TransactionObserver
from pyrevenew.tracking.recorder import TransactionRecorder

__all__ = [
    "ClassifiedEvent",
    "LogDispatcher",
    "ObservationOutcome",
    "SubscriptionStatusEvaluator",
    "TransactionClassifier",
    "TransactionObserver",
    "TransactionRecorder",
]
