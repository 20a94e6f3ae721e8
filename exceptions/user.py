"""
User-related exceptions.
"""

from .base import ShopException, NotFoundException


class UserException(ShopException):
    """Base exception for user-related errors."""
    pass


class UserNotFoundException(UserException, NotFoundException):
    """Raised when user is not found in database."""

    def __init__(self, user_id: int):
        super().__init__(
            "User not found.",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class AdminAuthenticationException(UserException):
    """Raised when an admin request carries a missing or wrong token."""

    def __init__(self):
        super().__init__("Unauthorized")


class UserAuthenticationException(UserException):
    """Raised when a customer request carries no valid signed token."""

    def __init__(self, reason: str):
        super().__init__("Unauthorized", details={'reason': reason})
