"""
Order-related exceptions.
"""

from .base import ShopException, NotFoundException


class OrderException(ShopException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException, NotFoundException):
    """Raised when order is not found in database (or not owned by the caller)."""

    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InvalidOrderStateException(OrderException):
    """Raised when order is in invalid state for requested operation."""

    def __init__(self, order_id: int, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', required '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state
