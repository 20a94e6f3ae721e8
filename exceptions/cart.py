"""
Cart-related exceptions.
"""

from .base import ShopException, NotFoundException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class CartNotFoundException(CartException, NotFoundException):
    """Raised when no cart exists for the requesting identity."""

    def __init__(self, identity: str):
        super().__init__(
            "Cart not found.",
            details={'identity': identity}
        )
        self.identity = identity


class CartItemNotFoundException(CartException, NotFoundException):
    """Raised when cart item not found."""

    def __init__(self, cart_id: int, product_id: int, packsize_id: int):
        super().__init__(
            "Cart item not found.",
            details={'cart_id': cart_id, 'product_id': product_id, 'packsize_id': packsize_id}
        )
        self.cart_id = cart_id
        self.product_id = product_id
        self.packsize_id = packsize_id


class CartConflictException(CartException):
    """
    Raised when two requests raced to create the cart of one identity
    and the retry under the same identity key also failed.
    """

    def __init__(self, identity_key: str):
        super().__init__(
            f"Cart for {identity_key} is being modified concurrently, please retry",
            details={'identity_key': identity_key}
        )
        self.identity_key = identity_key
