"""
Promo code exceptions.
"""

from decimal import Decimal

from .base import ShopException, NotFoundException


class PromoCodeException(ShopException):
    """Base exception for promo code errors."""
    pass


class PromoCodeNotFoundException(PromoCodeException, NotFoundException):
    """
    Raised when no active promo code matches the code inside its date window.

    Unknown, inactive and expired codes are deliberately indistinguishable
    to the caller.
    """

    def __init__(self, code: str):
        super().__init__(
            "Invalid or expired promo code.",
            details={'code': code}
        )
        self.code = code


class PromoCodeBelowMinimumException(PromoCodeException):
    """Raised when a fixed-amount code exceeds the candidate subtotal."""

    def __init__(self, code: str, subtotal: Decimal, discount: Decimal):
        super().__init__(
            f"Cart subtotal (${subtotal}) must be at least the promo code discount (${discount}).",
            details={'code': code, 'subtotal': str(subtotal), 'discount': str(discount)}
        )
        self.code = code
        self.subtotal = subtotal
        self.discount = discount


class PromoCodeNotAppliedException(PromoCodeException, NotFoundException):
    """Raised when removing a promo code from a cart that has none attached."""

    def __init__(self, identity: str):
        super().__init__(
            "No applied promo code found for you.",
            details={'identity': identity}
        )
        self.identity = identity


class DuplicatePromoCodeException(PromoCodeException):

    def __init__(self, code: str):
        super().__init__(
            f"Promo code '{code}' already exists",
            details={'code': code}
        )
        self.code = code


class PromoCodeRecordNotFoundException(PromoCodeException, NotFoundException):
    """Raised by admin operations addressing a promo code id that does not exist."""

    def __init__(self, promocode_id: int):
        super().__init__(
            f"Promo code {promocode_id} not found",
            details={'promocode_id': promocode_id}
        )
        self.promocode_id = promocode_id
