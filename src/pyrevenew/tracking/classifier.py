"""Transaction classification.

Stores do not flag a transaction as "new", "trial" or "conversion".  This
module derives that from the transaction, its product and the id of the last
transaction that was reported.

Trial detection is a heuristic: a transaction is a trial start when its
product offers a free trial *and* its purchase date is within
:data:`~pyrevenew._constants.TRIAL_START_WINDOW_SECONDS` of the original
purchase date, i.e. it is the first transaction of its subscription group.
Renewals and the paid conversion after a trial carry the original date of
that first purchase and therefore fall outside the window.  The heuristic
cannot tell a trial start from an immediate paid start when both are the
first transaction of a group and the offer is still advertised; it is an
approximation, not a guaranteed trial/conversion split.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from pyrevenew._constants import TRIAL_START_WINDOW_SECONDS, UNKNOWN_STOREFRONT
from pyrevenew.models.events import PurchaseEvent
from pyrevenew.models.product import Product
from pyrevenew.models.transaction import Transaction


class ClassifiedEvent(BaseModel):
    """A transaction ready to be reported."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    event: PurchaseEvent
    is_trial: bool
    trial_period: str | None = None

    @model_validator(mode="after")
    def _consistent_trial(self) -> ClassifiedEvent:
        if (self.trial_period is not None) and not self.is_trial:
            raise ValueError("trial_period requires is_trial")
        return self


def is_first_in_group(transaction: Transaction, *, window_seconds: float = TRIAL_START_WINDOW_SECONDS) -> bool:
    """Whether *transaction* is the first one of its subscription group."""
    gap = abs((transaction.original_purchase_date - transaction.purchase_date).total_seconds())
    return gap < window_seconds


def trial_period_for(product: Product) -> str | None:
    """Description of the product's free trial, e.g. ``"7 days"``."""
    offer = product.free_trial_offer
    if offer is None:
        return None
    return offer.period.describe()


def build_purchase_event(
    transaction: Transaction,
    product: Product,
    *,
    app_name: str,
    is_trial: bool,
    trial_period: str | None,
) -> PurchaseEvent:
    return PurchaseEvent(
        currency_code=product.currency_code,
        price=product.price,
        price_formatted=product.display_price,
        kind=product.kind.value,
        is_sandbox=transaction.is_sandbox,
        app_name=app_name,
        store_front=transaction.storefront or UNKNOWN_STOREFRONT,
        is_trial=is_trial,
        trial_period=trial_period if is_trial else None,
    )


class TransactionClassifier:
    """Maps ``(transaction, product, last_logged_id)`` to a reportable event."""

    def __init__(self, app_name: str, *, window_seconds: float = TRIAL_START_WINDOW_SECONDS) -> None:
        self._app_name = app_name
        self._window_seconds = window_seconds

    def classify(
        self,
        transaction: Transaction,
        product: Product,
        last_logged_id: str | None,
    ) -> ClassifiedEvent | None:
        """Return the event to report, or ``None`` if already reported."""
        if transaction.id == last_logged_id:
            return None

        trial_period = trial_period_for(product)
        is_trial = trial_period is not None and is_first_in_group(transaction, window_seconds=self._window_seconds)
        if not is_trial:
            trial_period = None

        return ClassifiedEvent(
            transaction_id=transaction.id,
            event=build_purchase_event(
                transaction,
                product,
                app_name=self._app_name,
                is_trial=is_trial,
                trial_period=trial_period,
            ),
            is_trial=is_trial,
            trial_period=trial_period,
        )
