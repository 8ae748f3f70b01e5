"""Observable purchase state owned by :class:`pyrevenew.PurchaseManager`.

UI layers either poll the properties or :meth:`PurchaseState.subscribe` to
change notifications.  Only the manager writes; all writes happen on the
event loop that runs the manager.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyrevenew.models.product import Product

_logger = logging.getLogger(__name__)

StateListener = Callable[[str, Any], None]


class PurchaseState:
    """``products``, ``is_loading``, ``error`` and ``is_subscribed``."""

    def __init__(self) -> None:
        self._products: tuple[Product, ...] = ()
        self._is_loading = False
        self._error: str | None = None
        self._is_subscribed = False
        self._listeners: list[StateListener] = []
        self._closed = False

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        """Human-readable message of the last purchase failure."""
        return self._error

    @property
    def is_subscribed(self) -> bool:
        return self._is_subscribed

    def product(self, product_id: str) -> Product | None:
        for candidate in self._products:
            if candidate.id == product_id:
                return candidate
        return None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener*; it is called as ``listener(field, value)``.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        """Drop all listeners; later writes notify nobody."""
        self._closed = True
        self._listeners.clear()

    def reopen(self) -> None:
        """Resume notifications after :meth:`close`; listeners must subscribe again."""
        self._closed = False

    def set_products(self, products: list[Product] | tuple[Product, ...]) -> None:
        self._set("products", tuple(products))

    def set_loading(self, value: bool) -> None:
        self._set("is_loading", value)

    def set_error(self, value: str | None) -> None:
        self._set("error", value)

    def set_subscribed(self, value: bool) -> None:
        self._set("is_subscribed", value)

    def _set(self, name: str, value: Any) -> None:
        attr = f"_{name}"
        if getattr(self, attr) == value:
            return
        setattr(self, attr, value)
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                listener(name, value)
            except Exception:
                _logger.debug("State listener failed for %s", name, exc_info=True)

    def snapshot(self) -> dict[str, Any]:
        return {
            "products": self._products,
            "is_loading": self._is_loading,
            "error": self._error,
            "is_subscribed": self._is_subscribed,
        }
