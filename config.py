import os
import sys
import logging
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from enums.currency import Currency
from enums.runtime_environment import RuntimeEnvironment

logger = logging.getLogger(__name__)

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)


def _exit_with_config_error(name: str, reason, expected: str) -> None:
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


def _positive_int(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, default))
        if value <= 0:
            raise ValueError(f"{name} must be positive (got: {value})")
        return value
    except ValueError as e:
        _exit_with_config_error(name, e, "Positive integer (e.g., 5, 10, 60)")


def _money(name: str, default: str) -> Decimal:
    try:
        value = Decimal(os.environ.get(name, default))
        if value < 0:
            raise ValueError(f"{name} must not be negative (got: {value})")
        return value
    except (InvalidOperation, ValueError) as e:
        _exit_with_config_error(name, e, "Non-negative decimal amount (e.g., 25, 199.00)")


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT", RuntimeEnvironment.DEV.value)
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    _exit_with_config_error("RUNTIME_ENVIRONMENT", e, f"One of: {', '.join(valid_values)}")

try:
    CURRENCY = Currency(os.environ.get("CURRENCY", Currency.USD.value))
except ValueError as e:
    _exit_with_config_error("CURRENCY", e, f"One of: {', '.join(c.value for c in Currency)}")

DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/shop.db")

WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = _positive_int("WEBAPP_PORT", 8000)

# CORS allowed origins for the storefront (comma-separated, empty disables CORS)
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []

# Admin API authentication (compared in constant time)
ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN")

# Customer bearer tokens (HMAC-signed by the auth service, see utils/user_token.py)
USER_TOKEN_SECRET = os.environ.get("USER_TOKEN_SECRET")
USER_TOKEN_MAX_AGE_SECONDS = _positive_int("USER_TOKEN_MAX_AGE_SECONDS", 86400)

# Shipping policy applied at order creation.
# Orders whose discounted total is strictly above the threshold ship free.
SHIPPING_FREE_THRESHOLD = _money("SHIPPING_FREE_THRESHOLD", "199")
SHIPPING_CHARGE = _money("SHIPPING_CHARGE", "25")

PAGE_ENTRIES = _positive_int("PAGE_ENTRIES", 10)

# Redis (rate limiting)
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = _positive_int("REDIS_PORT", 6379)
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD") or None
MAX_ORDERS_PER_IDENTITY_PER_HOUR = _positive_int("MAX_ORDERS_PER_IDENTITY_PER_HOUR", 5)
MAX_PROMO_CODE_ATTEMPTS_PER_HOUR = _positive_int("MAX_PROMO_CODE_ATTEMPTS_PER_HOUR", 20)

# PayPal payment links
PAYPAL_MODE = os.environ.get("PAYPAL_MODE", "Sandbox")
PAYPAL_CLIENT_ID = os.environ.get("PAYPAL_CLIENT_ID")
PAYPAL_CLIENT_SECRET = os.environ.get("PAYPAL_CLIENT_SECRET")
PAYPAL_API_URL = (
    "https://api-m.paypal.com" if PAYPAL_MODE == "Live" else "https://api-m.sandbox.paypal.com"
)
if PAYPAL_MODE == "Live" and (not PAYPAL_CLIENT_ID or not PAYPAL_CLIENT_SECRET):
    _exit_with_config_error(
        "PAYPAL_MODE", "Live mode requires PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET",
        "Sandbox, or Live with both credentials set"
    )

# Order confirmation mail
MAIL_HOST = os.environ.get("MAIL_HOST", "localhost")
MAIL_PORT = _positive_int("MAIL_PORT", 465)
MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "Shop")

# Outbox dispatch (post-commit side effects of order creation)
OUTBOX_POLL_INTERVAL_SECONDS = _positive_int("OUTBOX_POLL_INTERVAL_SECONDS", 10)
OUTBOX_MAX_ATTEMPTS = _positive_int("OUTBOX_MAX_ATTEMPTS", 5)
OUTBOX_BATCH_SIZE = _positive_int("OUTBOX_BATCH_SIZE", 20)

# Logging
_default_retention = 30 if RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD else 7
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_RETENTION_DAYS = _positive_int("LOG_RETENTION_DAYS", _default_retention)
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"

if RUNTIME_ENVIRONMENT != RuntimeEnvironment.TEST and not USER_TOKEN_SECRET:
    logger.warning("[Config] USER_TOKEN_SECRET is not set, order endpoints will reject every request")
if RUNTIME_ENVIRONMENT != RuntimeEnvironment.TEST and not ADMIN_API_TOKEN:
    logger.warning("[Config] ADMIN_API_TOKEN is not set, admin endpoints will reject every request")
