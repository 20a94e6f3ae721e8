"""
Base exception classes for the shop backend.
"""


class ShopException(Exception):
    """
    Base exception for all shop errors.

    All custom exceptions in the shop should inherit from this class.
    This allows catching all shop-specific exceptions with a single handler.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class NotFoundException(ShopException):
    """Marker base for every 'referenced entity does not exist' error."""
    pass


class ValidationException(ShopException):
    """Raised when input is malformed. Nothing has been written."""

    def __init__(self, reason: str, errors: list[str] | None = None):
        super().__init__(
            f"Validation error: {reason}",
            details={'errors': errors or [reason]}
        )
        self.reason = reason
        self.errors = errors or [reason]


class TransactionFailureException(ShopException):
    """
    Raised when a persistence error interrupts a multi-step write.

    The transaction has been rolled back completely; callers only
    get a generic message, the cause is logged.
    """

    def __init__(self, operation: str):
        super().__init__(
            f"Could not complete {operation}, nothing was saved",
            details={'operation': operation}
        )
        self.operation = operation


class RateLimitExceededException(ShopException):
    """Raised when an identity exceeds the allowed rate for an operation."""

    def __init__(self, operation: str, retry_after: int):
        super().__init__(
            f"Too many {operation} requests, retry in {retry_after}s",
            details={'operation': operation, 'retry_after': retry_after}
        )
        self.operation = operation
        self.retry_after = retry_after
