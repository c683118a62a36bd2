"""Session cookie utilities for FastAPI routes"""
from typing import Optional

import jwt
from fastapi import Request, Response
from pydantic import BaseModel

from account_management.auth_service import AuthService
from core.config import settings
from core.exceptions import AuthenticationError
from core.logging import get_logger
from database.models import User, UserRole

logger = get_logger(__name__)


class CurrentSession(BaseModel):
    """Identity carried by a valid session cookie"""

    user_id: str
    role: UserRole


def read_session(request: Request) -> Optional[CurrentSession]:
    """Decode the session cookie, returning None when missing or invalid"""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    try:
        payload = AuthService.decode_token(token)
        return CurrentSession(user_id=payload["sub"], role=UserRole(payload["role"]))
    except jwt.ExpiredSignatureError:
        logger.debug("Expired session cookie")
        return None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        logger.warning("Invalid session cookie")
        return None


def get_current_session(request: Request) -> CurrentSession:
    """FastAPI dependency to require a session

    Raises:
        AuthenticationError: If no valid session cookie is present
    """
    session = read_session(request)
    if session is None:
        raise AuthenticationError()
    return session


def set_session_cookie(response: Response, user: User) -> None:
    """Issue a session cookie for the user"""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=AuthService.generate_session_token(user),
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def get_client_info(request: Request) -> dict:
    """Extract client IP and User-Agent for audit logging"""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("User-Agent"),
    }
