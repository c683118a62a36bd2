"""
VA administration service

Manages VA records, their commission rates and the accounts behind them,
including transactional deletion of a VA together with its login.
"""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from account_management.repository import UserRepository
from core.exceptions import DuplicateError, NotFoundError
from core.logging import get_logger
from core.utils import generate_password, to_decimal, utc_now
from database.models import VA, AuditLog, Commission, Lead, LeadEvent, MagicToken, User, UserRole

logger = get_logger("va_service", domain="account_management")

PERCENT = Decimal("100")


def percent_to_fraction(percentage: Any) -> Optional[Decimal]:
    """Convert a 0-100 percentage to the stored 0-1 fraction"""
    value = to_decimal(percentage)
    if value is None:
        return None
    return (value / PERCENT).quantize(Decimal("0.0001"))


class VAService:
    """Service for VA administration"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)

    def list_vas(self) -> list[VA]:
        return self.db.query(VA).order_by(VA.created_at.desc()).all()

    def get_va(self, va_id: str) -> VA:
        va = self.db.query(VA).filter(VA.id == va_id).first()
        if not va:
            raise NotFoundError("VA", va_id)
        return va

    def create_va(
        self,
        name: str,
        user_id: Optional[str] = None,
        commission_percentage: Any = None,
        timezone: str = "UTC",
        notes: Optional[str] = None,
    ) -> VA:
        if user_id:
            self.users.get_user_or_404(user_id)
            if self.db.query(VA).filter(VA.user_id == user_id).first():
                raise DuplicateError("VA", user_id, message="User already has a VA record")

        va = VA(
            name=name,
            user_id=user_id,
            commission_percentage=percent_to_fraction(commission_percentage),
            timezone=timezone,
            notes=notes,
        )
        self.db.add(va)
        self.db.commit()
        self.db.refresh(va)

        logger.info(f"Created VA {va.id}")
        return va

    def update_va(self, va_id: str, updates: dict[str, Any]) -> VA:
        va = self.get_va(va_id)
        for field in ("name", "timezone", "notes"):
            if field in updates:
                setattr(va, field, updates[field])
        va.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(va)
        return va

    def set_commission_percentage(self, va_id: str, percentage: Any) -> VA:
        """Set the VA's own commission rate from a 0-100 percentage"""
        va = self.get_va(va_id)
        va.commission_percentage = percent_to_fraction(percentage)
        va.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(va)

        logger.info(f"VA {va_id} commission set to {va.commission_percentage}")
        return va

    def create_va_account(self, email: str, name: str, commission_percentage: Any) -> tuple[User, VA, str]:
        """
        Create a VA login and its VA record with a generated password

        Returns:
            Tuple of (user, va, plain password to hand over once)
        """
        password = generate_password()

        try:
            user = self.users.create_user(email, UserRole.VA, password=password, commit=False)
            va = VA(user_id=user.id, name=name, commission_percentage=percent_to_fraction(commission_percentage))
            self.db.add(va)
            self.db.commit()
            self.db.refresh(user)
            self.db.refresh(va)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error creating VA account: {e}")
            raise

        logger.info(f"Created VA account {va.id} for user {user.id}")
        return user, va, password

    def delete_va(self, va_id: str) -> str:
        """
        Delete a VA and its login in one transaction

        Leads and commissions are kept and detached from the VA. The user's
        audit logs and lead events are anonymized, magic tokens deleted, then
        the VA and the user are removed. Any failure rolls everything back.
        """
        va = self.get_va(va_id)
        user_id = va.user_id
        name = va.name

        try:
            self.db.query(Lead).filter(Lead.va_id == va_id).update({Lead.va_id: None}, synchronize_session=False)
            self.db.query(Commission).filter(Commission.va_id == va_id).update(
                {Commission.va_id: None}, synchronize_session=False
            )

            if user_id:
                self.db.query(AuditLog).filter(AuditLog.user_id == user_id).update(
                    {AuditLog.user_id: None}, synchronize_session=False
                )
                self.db.query(LeadEvent).filter(LeadEvent.user_id == user_id).update(
                    {LeadEvent.user_id: None}, synchronize_session=False
                )
                self.db.query(MagicToken).filter(MagicToken.user_id == user_id).delete(synchronize_session=False)

            self.db.query(VA).filter(VA.id == va_id).delete(synchronize_session=False)

            if user_id:
                self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error deleting VA {va_id}, rolled back: {e}")
            raise

        logger.info(f"Deleted VA {va_id} and user {user_id}")
        return name
