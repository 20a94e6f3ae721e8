"""
Centralized Logging Configuration

- Log level from config.LOG_LEVEL
- Midnight rotation, config.LOG_RETENTION_DAYS files kept
- Secret and PII masking (PayPal credentials, admin token, customer contact data)
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config

logger = logging.getLogger(__name__)


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that replaces sensitive values with [REDACTED_*] markers.

    Masks:
    - Client secrets, tokens and passwords (key=value and JSON forms)
    - Bearer / Basic authorization headers
    - Customer email addresses and phone numbers
    - Shipping addresses
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # PayPal client secret / generic secrets
        (re.compile(r'((?:client[_-]?)?secret["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{8,})(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_SECRET]\3'),

        # Tokens (access_token, admin token header values)
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:.]{16,})(["\']?)', re.IGNORECASE),
         r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.=&%]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(Basic\s+)([A-Za-z0-9+/=]{8,})', re.IGNORECASE), r'\1[REDACTED_BASIC_AUTH]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Phone numbers (various formats)
        (re.compile(r'\b(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b'), '[REDACTED_PHONE]'),

        # Shipping addresses
        (re.compile(r'(address["\']?\s*[:=]\s*["\']?)([^"\']{10,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_ADDRESS]\3'),
    ]

    def _mask(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Modifies the record, never drops it
        if record.msg:
            record.msg = self._mask(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(self._mask(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


def _build_handlers(log_level: int, retention_days: int) -> list[logging.Handler]:
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    formatter = logging.Formatter(
        fmt='%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handlers = [
        logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / "shop.log",
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
    return handlers


def setup_logging():
    """
    Initialize logging. Called once by run.py before the app is imported.

    Writes to logs/shop.log and the console.
    """
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    handlers = _build_handlers(log_level, config.LOG_RETENTION_DAYS)
    if config.LOG_MASK_SECRETS:
        masking_filter = SecretMaskingFilter()
        for handler in handlers:
            handler.addFilter(masking_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # uvicorn may have installed its own handlers already
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    # SQL statements would leak customer data into the logs
    for noisy in ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info(f"Logging initialized: level={config.LOG_LEVEL}, retention={config.LOG_RETENTION_DAYS} days, "
                f"masking={'on' if config.LOG_MASK_SECRETS else 'off'}")
