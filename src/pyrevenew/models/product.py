"""Product catalog models as delivered by the commerce layer."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import Field

from pyrevenew.models._base import RevenewBaseModel


class ProductKind(StrEnum):
    """Store product type, sent verbatim as ``kind`` on purchase events."""

    CONSUMABLE = "consumable"
    NON_CONSUMABLE = "non_consumable"
    AUTO_RENEWABLE = "auto_renewable"
    NON_RENEWABLE = "non_renewable"


class PaymentMode(StrEnum):
    """How an introductory offer is paid for."""

    FREE_TRIAL = "free_trial"
    PAY_AS_YOU_GO = "pay_as_you_go"
    PAY_UP_FRONT = "pay_up_front"


class PeriodUnit(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SubscriptionPeriod(RevenewBaseModel):
    """A billing or offer period such as "7 days" or "1 month"."""

    value: int = Field(ge=1)
    unit: PeriodUnit

    def describe(self) -> str:
        """Human description, pluralised when ``value`` is not 1."""
        unit = self.unit.value if self.value == 1 else f"{self.unit.value}s"
        return f"{self.value} {unit}"


class IntroductoryOffer(RevenewBaseModel):
    """Introductory offer attached to a subscription product."""

    payment_mode: PaymentMode
    period: SubscriptionPeriod
    period_count: int = 1

    @property
    def is_free_trial(self) -> bool:
        return self.payment_mode == PaymentMode.FREE_TRIAL


class SubscriptionInfo(RevenewBaseModel):
    """Subscription descriptor of an auto-renewable product."""

    group_id: str
    period: SubscriptionPeriod | None = None
    introductory_offer: IntroductoryOffer | None = None


class Product(RevenewBaseModel):
    """A purchasable product.

    Only the fields the SDK needs for reporting are modelled; the commerce
    layer may keep its native product object around and map it into this
    shape when handing products to :class:`pyrevenew.PurchaseManager`.
    """

    id: str
    """Store product identifier."""

    display_name: str = ""

    price: Decimal
    """Price in the storefront currency."""

    display_price: str
    """Localized, formatted price (e.g. ``"€4,99"``)."""

    currency_code: str
    """ISO 4217 currency code."""

    kind: ProductKind

    subscription: SubscriptionInfo | None = None
    """Present for auto-renewable subscriptions only."""

    @property
    def free_trial_offer(self) -> IntroductoryOffer | None:
        """The introductory offer, if it is a free trial."""
        if self.subscription is None:
            return None
        offer = self.subscription.introductory_offer
        if offer is None or not offer.is_free_trial:
            return None
        return offer
