"""
Repository for user accounts
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from account_management.auth_service import AuthService
from core.exceptions import DuplicateError, NotFoundError, ValidationError
from core.logging import get_logger
from core.utils import generate_password, utc_now
from database.models import VA, User, UserRole

logger = get_logger("account_repository", domain="account_management")


class UserRepository:
    """Repository for User CRUD operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_or_404(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def list_users(self) -> list[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def create_user(
        self,
        email: str,
        role: UserRole,
        password: Optional[str] = None,
        commit: bool = True,
    ) -> User:
        """
        Create a user account

        Raises:
            DuplicateError: If the email is already registered
        """
        email = email.strip().lower()
        if AuthService.get_user_by_email(self.db, email):
            raise DuplicateError("User", email)

        user = User(
            email=email,
            role=role,
            password_hash=AuthService.hash_password(password) if password else None,
            is_active=True,
        )
        self.db.add(user)

        try:
            if commit:
                self.db.commit()
                self.db.refresh(user)
            else:
                self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating user: {e}")
            raise DuplicateError("User", email)

        logger.info(f"Created user {user.id} with role {role.value}")
        return user

    def set_active(self, user_id: str, is_active: bool) -> User:
        user = self.get_user_or_404(user_id)
        user.is_active = is_active
        user.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user

    def reset_va_password(self, user_id: str) -> tuple[User, str]:
        """
        Replace an active VA's password with a generated temporary one

        Returns:
            Tuple of (user, temporary password)
        """
        user = self.get_user_or_404(user_id)

        if user.role != UserRole.VA:
            raise ValidationError("Password reset is only available for VA accounts", field="user_id")
        if not user.is_active:
            raise ValidationError("Cannot reset password for an inactive account", field="user_id")

        temp_password = generate_password()
        user.password_hash = AuthService.hash_password(temp_password)
        user.updated_at = utc_now()
        self.db.commit()

        logger.info(f"Password reset for VA user {user_id}")
        return user, temp_password

    def accept_invite(
        self,
        token: str,
        email: str,
        password: Optional[str] = None,
        name: Optional[str] = None,
    ) -> User:
        """
        Create the invited account and consume the invite in one transaction

        Non-VA roles must set a password. VA invites also get a VA record.
        """
        invite = AuthService.get_valid_invite(self.db, token)
        if not invite:
            raise ValidationError("Invalid or expired invite", field="token")

        if invite.email != email.strip().lower():
            raise ValidationError("Email does not match invite", field="email")

        if invite.role != UserRole.VA and not password:
            raise ValidationError("Password is required", field="password")

        try:
            user = self.create_user(invite.email, invite.role, password=password, commit=False)

            if invite.role == UserRole.VA:
                self.db.add(VA(user_id=user.id, name=name or invite.email.split("@")[0]))

            invite.used_at = utc_now()
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error accepting invite: {e}")
            raise

        logger.info(f"Invite {invite.id} accepted by user {user.id}")
        return user
