"""
Core utility functions used across domains
"""
import secrets
import string
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional
from urllib.parse import urlparse

CENTS = Decimal("0.01")


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)"""
    return datetime.now(timezone.utc)


def make_aware(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware (UTC)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def generate_token(num_bytes: int = 32) -> str:
    """Generate a secure random hex token"""
    return secrets.token_hex(num_bytes)


def generate_password(length: int = 12) -> str:
    """Generate a random alphanumeric password"""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Coerce numbers and numeric strings to Decimal"""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(amount: Decimal) -> Decimal:
    """Round a money amount to cents"""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_url(url: str) -> str:
    """
    Reduce a listing URL to scheme://host/path.

    Query string, fragment, port and credentials are dropped and the host is
    lower-cased. URLs without a scheme or host are returned unchanged.
    """
    if not url:
        return url

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError:
        return url

    if not parsed.scheme or not hostname:
        return url

    return f"{parsed.scheme.lower()}://{hostname}{parsed.path or '/'}"


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """Mask sensitive data showing only first few characters"""
    if not data or len(data) <= visible_chars:
        return "*" * len(data) if data else ""

    return data[:visible_chars] + "*" * (len(data) - visible_chars)
