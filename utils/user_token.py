"""
Signed customer tokens.

The auth service hands customers a bearer token of the form

    auth_date=<unix ts>&user_id=<id>&hash=<hex HMAC-SHA256>

The hash covers the alphabetically sorted key=value pairs (newline
separated), keyed with HMAC_SHA256(USER_TOKEN_SECRET, "ShopUserToken").
Order endpoints only trust a user id taken from a token that validates here.

Security features:
- HMAC-SHA256 signature verification (constant-time compare)
- Token age limit (replay protection)
"""

import hashlib
import hmac
import logging
import time
from urllib.parse import parse_qsl, urlencode

logger = logging.getLogger(__name__)

CLOCK_SKEW_SECONDS = 60


class UserTokenValidationError(Exception):
    """Raised when a customer token is missing, malformed, expired or forged."""
    pass


def _signature(fields: dict[str, str], secret: str) -> str:
    data_check_string = '\n'.join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(key=b"ShopUserToken", msg=secret.encode('utf-8'), digestmod=hashlib.sha256).digest()
    return hmac.new(key=secret_key, msg=data_check_string.encode('utf-8'), digestmod=hashlib.sha256).hexdigest()


def issue_user_token(user_id: int, secret: str, issued_at: int | None = None) -> str:
    """
    Sign a token for user_id.

    Example:
        >>> issue_user_token(5, "s3cret", issued_at=1700000000)
        'auth_date=1700000000&user_id=5&hash=...'
    """
    if not secret:
        raise UserTokenValidationError("Token secret not configured")
    fields = {
        "auth_date": str(int(time.time()) if issued_at is None else issued_at),
        "user_id": str(user_id),
    }
    return urlencode({**fields, "hash": _signature(fields, secret)})


def validate_user_token(token: str, secret: str, max_age_seconds: int = 86400) -> int:
    """
    Validate a customer token and return the user id it was issued for.

    Args:
        token: Raw token from the Authorization: Bearer header
        secret: USER_TOKEN_SECRET
        max_age_seconds: Maximum token age

    Returns:
        User ID

    Raises:
        UserTokenValidationError: If validation fails
    """
    if not token:
        raise UserTokenValidationError("No token provided")

    if not secret:
        raise UserTokenValidationError("Token secret not configured")

    fields = dict(parse_qsl(token, keep_blank_values=True))
    received_hash = fields.pop('hash', None)
    if not received_hash:
        raise UserTokenValidationError("No hash in token")

    try:
        auth_date = int(fields.get('auth_date', ''))
        user_id = int(fields.get('user_id', ''))
    except ValueError:
        raise UserTokenValidationError("Invalid auth_date or user_id")

    if not hmac.compare_digest(_signature(fields, secret), received_hash):
        logger.warning(f"Token signature mismatch for user_id={user_id}")
        raise UserTokenValidationError("Invalid signature")

    age_seconds = time.time() - auth_date
    if age_seconds > max_age_seconds:
        raise UserTokenValidationError(f"Token too old ({int(age_seconds)}s > {max_age_seconds}s max)")
    if age_seconds < -CLOCK_SKEW_SECONDS:
        raise UserTokenValidationError("Token timestamp is in the future")

    if user_id <= 0:
        raise UserTokenValidationError("Invalid user_id")
    return user_id
