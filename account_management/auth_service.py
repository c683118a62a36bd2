"""
Authentication Service for Account Management
Handles password hashing, session tokens, magic links and invites
"""
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session

from core.config import settings
from core.logging import get_logger
from core.utils import generate_token, make_aware, utc_now
from database.models import Invite, MagicToken, User, UserRole
from system_settings.repository import SettingsRepository

logger = get_logger(__name__)


class AuthService:
    """Service for handling authentication operations"""

    # JWT Configuration
    JWT_ALGORITHM = "HS256"
    SESSION_TOKEN_TYPE = "session"

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password using bcrypt

        Args:
            password: Plain text password

        Returns:
            str: Hashed password
        """
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password to compare against

        Returns:
            bool: True if password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    @staticmethod
    def generate_session_token(user: User) -> str:
        """
        Generate a signed session token

        The role is embedded in the token and trusted until expiry.

        Args:
            user: Authenticated user

        Returns:
            str: JWT session token
        """
        now = utc_now()
        payload = {
            "sub": user.id,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(hours=settings.session_ttl_hours),
            "type": AuthService.SESSION_TOKEN_TYPE,
        }
        return jwt.encode(payload, settings.secret_key, algorithm=AuthService.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """
        Decode and validate a session token

        Args:
            token: JWT token

        Returns:
            dict: Token payload

        Raises:
            jwt.ExpiredSignatureError: If token is expired
            jwt.InvalidTokenError: If token is invalid
        """
        payload = jwt.decode(token, settings.secret_key, algorithms=[AuthService.JWT_ALGORITHM])
        if payload.get("type") != AuthService.SESSION_TOKEN_TYPE:
            raise jwt.InvalidTokenError("Not a session token")
        return payload

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user with email and password

        Returns:
            User if credentials are valid and the account is active, None otherwise
        """
        user = AuthService.get_user_by_email(db, email)

        if not user or not user.password_hash:
            return None

        if not user.is_active:
            logger.info("Login attempt for inactive account", extra={"user_id": user.id})
            return None

        if not AuthService.verify_password(password, user.password_hash):
            return None

        return user

    @staticmethod
    def record_login(db: Session, user: User) -> None:
        user.last_login_at = utc_now()
        db.commit()

    @staticmethod
    def create_magic_link(db: Session, email: str) -> Optional[MagicToken]:
        """
        Create a single-use login token for an active VA account

        Returns None for unknown, inactive or non-VA accounts so callers can
        respond identically in every case.
        """
        user = AuthService.get_user_by_email(db, email)
        if not user or not user.is_active or user.role != UserRole.VA:
            logger.info("Magic link request ignored", extra={"reason": "not an active VA account"})
            return None

        expiry_minutes = SettingsRepository(db).get_int("magic_link_expiry_minutes", settings.magic_link_expiry_minutes)

        magic_token = MagicToken(
            token=generate_token(32),
            user_id=user.id,
            expires_at=utc_now() + timedelta(minutes=expiry_minutes),
        )
        db.add(magic_token)
        db.commit()
        db.refresh(magic_token)

        return magic_token

    @staticmethod
    def consume_magic_link(db: Session, token: str) -> Optional[User]:
        """
        Consume a magic link token

        Returns:
            User if the token is valid, unused and unexpired, None otherwise
        """
        magic_token = db.query(MagicToken).filter(MagicToken.token == token).first()

        if not magic_token or magic_token.used_at is not None:
            return None

        if make_aware(magic_token.expires_at) < utc_now():
            return None

        user = db.query(User).filter(User.id == magic_token.user_id).first()
        if not user or not user.is_active:
            return None

        magic_token.used_at = utc_now()
        db.commit()

        return user

    @staticmethod
    def create_invite(db: Session, email: str, role: UserRole, created_by: str) -> Invite:
        invite = Invite(
            token=generate_token(32),
            email=email.strip().lower(),
            role=role,
            expires_at=utc_now() + timedelta(days=settings.invite_expiry_days),
            created_by=created_by,
        )
        db.add(invite)
        db.commit()
        db.refresh(invite)

        logger.info("Invite created", extra={"invite_id": invite.id, "role": role.value})
        return invite

    @staticmethod
    def get_valid_invite(db: Session, token: str) -> Optional[Invite]:
        """Return the invite if it exists, is unused and unexpired"""
        invite = db.query(Invite).filter(Invite.token == token).first()

        if not invite or invite.used_at is not None:
            return None

        if make_aware(invite.expires_at) < utc_now():
            return None

        return invite

    @staticmethod
    def list_pending_invites(db: Session) -> list[Invite]:
        now = utc_now()
        invites = db.query(Invite).filter(Invite.used_at.is_(None)).order_by(Invite.created_at.desc()).all()
        return [invite for invite in invites if make_aware(invite.expires_at) >= now]
