"""
Payment link exceptions.

These never reach the customer: payment links are requested after the
order has been committed, failures are logged and retried.
"""

from .base import ShopException


class PaymentException(ShopException):
    """Base exception for payment-related errors."""
    pass


class PaymentLinkException(PaymentException):
    """Raised when the payment provider did not return an approval link."""

    def __init__(self, reason: str, order_id: int | None = None):
        super().__init__(
            f"Failed to create payment link: {reason}",
            details={'order_id': order_id, 'reason': reason}
        )
        self.order_id = order_id
        self.reason = reason
