"""Custom exception hierarchy for pyrevenew."""

from __future__ import annotations


class RevenewError(Exception):
    """Base exception for all pyrevenew errors."""


class RevenewConfigError(RevenewError):
    """Invalid or missing configuration."""


class CommerceError(RevenewError):
    """Failure reported by a commerce layer implementation.

    Purchase flows never let this escape; it is converted into the
    human-readable ``error`` field of :class:`pyrevenew.state.PurchaseState`.
    """


class RevenewLogError(RevenewError):
    """An analytics log request failed.

    These errors are terminal-local: the dispatcher writes them to the
    ``pyrevenew`` logger and drops the event.
    """

    custom_message: str = "Unknown error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class InvalidUrlError(RevenewLogError):
    """Host/port/path could not be assembled into a URL."""


class NoResponseError(RevenewLogError):
    """Network failure or timeout before any HTTP response arrived."""


class UnauthorizedError(RevenewLogError):
    """Backend answered 401."""

    custom_message = "Session expired"


class NotFoundError(RevenewLogError):
    """Backend answered 404."""

    custom_message = "Not found"


class ConflictError(RevenewLogError):
    """Backend answered 409."""

    custom_message = "Conflict"


class DecodeError(RevenewLogError):
    """Response body was not a JSON object."""

    custom_message = "Decode error"


class UnexpectedStatusError(RevenewLogError):
    """Backend answered with a status code without a dedicated mapping."""


class UnknownLogError(RevenewLogError):
    """Anything else that went wrong while sending a log request."""
