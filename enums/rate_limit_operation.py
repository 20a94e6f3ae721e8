from enum import Enum


class RateLimitOperation(str, Enum):
    """
    Rate limit operation types.

    Each operation has its own independent rate limit counter.
    """

    ORDER_CREATE = "order_create"
    """
    Rate limit for order creation.
    Config: MAX_ORDERS_PER_IDENTITY_PER_HOUR
    Default: 5 orders per hour
    """

    PROMO_CODE_APPLY = "promo_code_apply"
    """
    Rate limit for promo code attempts.
    Prevents brute-forcing valid codes.
    """
