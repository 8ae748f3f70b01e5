"""Outbound analytics events and the backend's response."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import ConfigDict, field_serializer, model_validator

from pyrevenew.models._base import RevenewBaseModel


class PurchaseEvent(RevenewBaseModel):
    """Body of ``POST /api/v1/log-purchase``."""

    currency_code: str
    price: Decimal
    price_formatted: str
    kind: str
    is_sandbox: bool
    app_name: str
    store_front: str
    is_trial: bool = False
    trial_period: str | None = None
    """Offer period description (e.g. ``"7 days"``), only for trial starts."""

    @model_validator(mode="after")
    def _trial_period_requires_trial(self) -> PurchaseEvent:
        if self.trial_period is not None and not self.is_trial:
            raise ValueError("trial_period is only allowed when is_trial is true")
        return self

    @field_serializer("price")
    def _price_as_number(self, value: Decimal) -> float | int:
        # The backend expects a JSON number, not pydantic's default string.
        if value == value.to_integral_value():
            return int(value)
        return float(value)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DownloadEvent(RevenewBaseModel):
    """Body of ``POST /api/v1/log-download``."""

    user_id: str
    app_name: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LogResponse(RevenewBaseModel):
    """Generic backend response.

    The backend answers both successes and 400/500 errors with a JSON
    object; the known keys are optional and anything else is kept.
    """

    model_config = ConfigDict(extra="allow")

    success: bool | None = None
    message: str | None = None
    id: str | int | None = None
