"""Errors raised by the order submission flow.

Every error carries a ``user_message`` that the booking screen shows as a
single alert. Field-level validation problems are listed in
``ValidationError.field_errors`` so the form can highlight the fields.
"""

from typing import Any


class SubmissionError(Exception):
    """Base exception for order submission failures."""

    default_message = "Something went wrong while placing your order. Please try again."

    def __init__(
        self,
        message: str | None = None,
        *,
        order_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.user_message = message or self.default_message
        self.order_id = order_id
        self.status_code = status_code
        super().__init__(self.user_message)


class ValidationError(SubmissionError):
    """Required booking fields are missing or invalid. Nothing was sent."""

    default_message = "Please fill in the highlighted fields."

    def __init__(self, field_errors: dict[str, str], message: str | None = None) -> None:
        self.field_errors = dict(field_errors)
        super().__init__(message)


class PersistenceError(SubmissionError):
    """The server refused to store the order."""

    default_message = "Failed to save your order. Please try again."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.details = details or []
        super().__init__(message, status_code=status_code)


class CheckoutSessionError(SubmissionError):
    """The checkout session could not be created or came back without an id."""

    default_message = "Could not start the payment. Your order was not charged."


class NetworkError(SubmissionError):
    """No response from the server (unreachable or timed out)."""

    default_message = "Could not reach the server. It may be down; please try again shortly."
    timeout_message = "The server took too long to respond. Please check your connection and try again."

    def __init__(self, message: str | None = None, *, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(message or (self.timeout_message if timed_out else None))


class RedirectError(SubmissionError):
    """The payment provider refused to open the checkout page."""

    default_message = "The payment page could not be opened."
