"""
Custom exceptions for the shop backend.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ShopException (base)
├── NotFoundException (marker, mapped to 404)
├── ValidationException
├── TransactionFailureException
├── RateLimitExceededException
├── CartException
│   ├── CartNotFoundException
│   ├── CartItemNotFoundException
│   └── CartConflictException
├── CatalogException
│   ├── ProductNotFoundException
│   ├── PackSizeNotFoundException
│   ├── PackSizeInUseException
│   └── OfferPlanNotFoundException
├── PromoCodeException
│   ├── PromoCodeNotFoundException
│   ├── PromoCodeBelowMinimumException
│   ├── PromoCodeNotAppliedException
│   ├── DuplicatePromoCodeException
│   └── PromoCodeRecordNotFoundException
├── OrderException
│   ├── OrderNotFoundException
│   └── InvalidOrderStateException
├── PaymentException
│   └── PaymentLinkException
└── UserException
    ├── UserNotFoundException
    ├── AdminAuthenticationException
    └── UserAuthenticationException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

The API translates them in one place (utils/error_handler.py):
    except ShopException as e:
        return shop_exception_to_response(e)
"""

from .base import (
    ShopException,
    NotFoundException,
    ValidationException,
    TransactionFailureException,
    RateLimitExceededException
)
from .cart import CartException, CartNotFoundException, CartItemNotFoundException, CartConflictException
from .catalog import (
    CatalogException,
    ProductNotFoundException,
    PackSizeNotFoundException,
    PackSizeInUseException,
    OfferPlanNotFoundException,
)
from .promo_code import (
    PromoCodeException,
    PromoCodeNotFoundException,
    PromoCodeBelowMinimumException,
    PromoCodeNotAppliedException,
    DuplicatePromoCodeException,
    PromoCodeRecordNotFoundException
)
from .order import OrderException, OrderNotFoundException, InvalidOrderStateException
from .payment import PaymentException, PaymentLinkException
from .user import (
    UserException,
    UserNotFoundException,
    AdminAuthenticationException,
    UserAuthenticationException
)

__all__ = [
    # Base
    'ShopException',
    'NotFoundException',
    'ValidationException',
    'TransactionFailureException',
    'RateLimitExceededException',

    # Cart
    'CartException',
    'CartNotFoundException',
    'CartItemNotFoundException',
    'CartConflictException',

    # Catalog
    'CatalogException',
    'ProductNotFoundException',
    'PackSizeNotFoundException',
    'PackSizeInUseException',
    'OfferPlanNotFoundException',

    # Promo code
    'PromoCodeException',
    'PromoCodeNotFoundException',
    'PromoCodeBelowMinimumException',
    'PromoCodeNotAppliedException',
    'DuplicatePromoCodeException',
    'PromoCodeRecordNotFoundException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InvalidOrderStateException',

    # Payment
    'PaymentException',
    'PaymentLinkException',

    # User
    'UserException',
    'UserNotFoundException',
    'AdminAuthenticationException',
    'UserAuthenticationException',
]
