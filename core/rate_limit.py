"""
Per-client rate limiting shared by all routers

Callers with a valid session cookie are keyed separately from anonymous
traffic from the same address and get a higher ceiling.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.auth import read_session
from core.config import settings

AUTHENTICATED_PREFIX = "auth:"


def rate_limit_key(request: Request) -> str:
    """Client address, prefixed when the request carries a valid session"""
    address = get_remote_address(request)
    if read_session(request) is not None:
        return f"{AUTHENTICATED_PREFIX}{address}"
    return address


def default_limit(key: str) -> str:
    """Limit string for a rate limit key"""
    if key.startswith(AUTHENTICATED_PREFIX):
        return settings.rate_limit_authenticated
    return settings.rate_limit_anonymous


LOGIN_LIMIT = settings.rate_limit_login

# Initialize rate limiter
limiter = Limiter(key_func=rate_limit_key, enabled=settings.rate_limit_enabled)
