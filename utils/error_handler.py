"""
Error Handler Utility for the HTTP API

Translates shop exceptions into JSON responses in one place:

    {"status": false, "message": "...", "details": {...}}

Routers and services only raise; FastAPI calls the handlers registered by
register_exception_handlers(app).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    ShopException,
    NotFoundException,
    ValidationException,
    TransactionFailureException,
    RateLimitExceededException,
    CartConflictException,
    PackSizeInUseException,
    PromoCodeNotFoundException,
    PromoCodeBelowMinimumException,
    PromoCodeNotAppliedException,
    DuplicatePromoCodeException,
    InvalidOrderStateException,
    PaymentLinkException,
    AdminAuthenticationException,
    UserAuthenticationException,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
STATUS_CODES: list[tuple[type[ShopException], int]] = [
    # Promo codes
    (PromoCodeNotFoundException, 400),
    (PromoCodeBelowMinimumException, 400),
    (PromoCodeNotAppliedException, 404),
    (DuplicatePromoCodeException, 409),

    # Cart / catalog / order
    (CartConflictException, 409),
    (PackSizeInUseException, 409),
    (InvalidOrderStateException, 400),

    # Generic
    (NotFoundException, 404),
    (ValidationException, 400),
    (AdminAuthenticationException, 401),
    (UserAuthenticationException, 401),
    (RateLimitExceededException, 429),
    (PaymentLinkException, 502),
    (TransactionFailureException, 500),
]


def status_code_for(exception: ShopException) -> int:
    for exception_type, status_code in STATUS_CODES:
        if isinstance(exception, exception_type):
            return status_code
    logger.error(f"Unmapped exception type: {type(exception).__name__}")
    return 500


def shop_exception_to_response(exception: ShopException) -> JSONResponse:
    """
    Convert a service exception to the JSON error body.

    Example:
        >>> shop_exception_to_response(CartNotFoundException("user:5"))
        404 {"status": false, "message": "Cart not found.", "details": {"identity": "user:5"}}
    """
    status_code = status_code_for(exception)
    if status_code >= 500:
        logger.error(f"Service error: {type(exception).__name__} - {exception!r}")
    else:
        logger.warning(f"Service error handled: {type(exception).__name__} - {exception}")

    headers = None
    if isinstance(exception, RateLimitExceededException):
        headers = {"Retry-After": str(exception.retry_after)}

    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": exception.message, "details": exception.details},
        headers=headers
    )


async def _handle_shop_exception(request: Request, exception: ShopException) -> JSONResponse:
    return shop_exception_to_response(exception)


async def _handle_request_validation_error(request: Request, exception: RequestValidationError) -> JSONResponse:
    errors = [f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}" for error in exception.errors()]
    logger.warning(f"Request rejected on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=422,
        content={"status": False, "message": "Validation error", "details": {"errors": errors}}
    )


async def _handle_unexpected_exception(request: Request, exception: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {type(exception).__name__}")
    return JSONResponse(
        status_code=500,
        content={"status": False, "message": "An unexpected error occurred", "details": {}}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopException, _handle_shop_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_exception)
