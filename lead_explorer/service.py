"""
Lead service

Business rules around the lead lifecycle: submission with VA assignment and
duplicate detection, edits, status transitions that trigger commissions,
role-scoped listing and transactional deletes.
"""

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from commissions.service import CommissionService
from core.exceptions import AuthorizationError, DuplicateLeadError, NotFoundError, ValidationError
from core.logging import get_logger
from core.utils import normalize_url
from database.models import VA, Lead, LeadEvent, LeadStatus, User, UserRole
from lead_explorer.repository import PRICE_FIELDS, LeadRepository
from lead_explorer.transitions import can_transition_status

logger = get_logger("lead_service", domain="lead_explorer")


class LeadService:
    """Service for lead lifecycle operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = LeadRepository(db)
        self.commissions = CommissionService(db)

    def get_va_for_user(self, user_id: str) -> Optional[VA]:
        return self.db.query(VA).filter(VA.user_id == user_id).first()

    def require_va(self, va_id: str) -> VA:
        """Resolve an assigned VA, rejecting ids with no VA record"""
        va = self.db.query(VA).filter(VA.id == va_id).first()
        if not va:
            raise ValidationError(f"VA {va_id} does not exist", field="va_id")
        return va

    def check_duplicate_lead(self, lead_data: dict[str, Any]) -> Optional[Lead]:
        """
        Find an existing lead matching the submission

        Exact match on the normalized source URL first, then a recent lead for
        the same make and model at a similar asking price.
        """
        source_url = lead_data.get("source_url")
        if source_url:
            existing = self.repository.get_lead_by_normalized_url(normalize_url(source_url))
            if existing:
                return existing

        if lead_data.get("make") and lead_data.get("model"):
            return self.repository.find_similar_lead(
                lead_data["make"], lead_data["model"], lead_data.get("asking_price")
            )

        return None

    def create_lead(self, lead_data: dict[str, Any], user_id: str) -> Lead:
        """
        Submit a lead

        VA submitters are always assigned to their own VA record.

        Raises:
            NotFoundError: If the submitting user does not exist
            ValidationError: If the assigned VA does not exist
            DuplicateLeadError: If the submission matches an existing lead
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)

        lead_data = dict(lead_data)
        if user.role == UserRole.VA:
            va = self.get_va_for_user(user.id)
            lead_data["va_id"] = va.id if va else None
        elif lead_data.get("va_id"):
            self.require_va(lead_data["va_id"])

        duplicate = self.check_duplicate_lead(lead_data)
        if duplicate:
            logger.info(f"Duplicate lead submission matches {duplicate.id}")
            raise DuplicateLeadError(duplicate.id)

        try:
            return self.repository.create_lead(lead_data, user_id)
        except IntegrityError:
            # Lost a race on the normalized URL
            existing = self.repository.get_lead_by_normalized_url(normalize_url(lead_data.get("source_url")))
            if existing:
                raise DuplicateLeadError(existing.id)
            raise

    def get_lead(self, lead_id: str) -> Lead:
        lead = self.repository.get_lead_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead", lead_id)
        return lead

    def get_visible_lead(self, lead_id: str, user_id: str, role: UserRole) -> Lead:
        """Fetch a lead, hiding other VAs' leads from VA sessions"""
        lead = self.get_lead(lead_id)
        if role == UserRole.VA:
            va = self.get_va_for_user(user_id)
            if not va or lead.va_id != va.id:
                raise NotFoundError("Lead", lead_id)
        return lead

    def list_leads(self, filters: dict[str, Optional[str]], user_id: str, role: UserRole) -> list[Lead]:
        """List leads; VA sessions only ever see leads of their own VA record"""
        filters = dict(filters)

        if role == UserRole.VA:
            va = self.get_va_for_user(user_id)
            if not va:
                return []
            filters["va_id"] = va.id

        return self.repository.list_leads(
            status=filters.get("status"),
            va_id=filters.get("va_id"),
            make=filters.get("make"),
        )

    def update_lead(self, lead_id: str, updates: dict[str, Any]) -> Lead:
        """
        Edit lead fields other than status

        An unpaid commission follows the new profit and the assigned VA.
        """
        lead = self.get_lead(lead_id)

        if updates.get("va_id"):
            self.require_va(updates["va_id"])
        va_changed = "va_id" in updates and updates["va_id"] != lead.va_id

        if "source_url" in updates:
            existing = self.repository.get_lead_by_normalized_url(normalize_url(updates["source_url"]))
            if existing and existing.id != lead.id:
                raise DuplicateLeadError(existing.id)

        try:
            self.repository.apply_updates(lead, updates)
            if va_changed or any(field in updates for field in PRICE_FIELDS):
                self.db.flush()
                self.commissions.recalculate_commission(lead.id, commit=False)
            self.db.commit()
            self.db.refresh(lead)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error updating lead {lead_id}: {e}")
            raise

        logger.info(f"Updated lead {lead_id}: {sorted(updates)}")
        return lead

    def update_status(
        self, lead_id: str, new_status: LeadStatus, user_id: str, role: UserRole, notes: Optional[str] = None
    ) -> Lead:
        """
        Move a lead to a new status

        Appends a status event and, on SOLD, creates the VA's commission in
        the same transaction.

        Raises:
            NotFoundError: If the lead does not exist
            AuthorizationError: If the transition is not allowed for the role
        """
        lead = self.get_lead(lead_id)
        old_status = lead.status

        if not can_transition_status(old_status, new_status, role):
            logger.warning(
                f"Rejected transition {old_status.value} -> {new_status.value} for lead {lead_id} by role {role.value}"
            )
            raise AuthorizationError("Status transition not allowed")

        try:
            self.repository.set_status(lead, new_status, user_id, notes=notes)
            self.db.flush()

            if new_status == LeadStatus.SOLD:
                self.commissions.create_commission_for_lead(lead, commit=False)

            self.db.commit()
            self.db.refresh(lead)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error updating status of lead {lead_id}: {e}")
            raise

        logger.info(f"Lead {lead_id} moved {old_status.value} -> {new_status.value} by {user_id}")
        return lead

    def get_lead_events(self, lead_id: str) -> list[LeadEvent]:
        return self.repository.get_lead_events(lead_id)

    def delete_lead(self, lead_id: str) -> None:
        self.get_lead(lead_id)
        self.repository.delete_leads([lead_id])

    def delete_leads(self, lead_ids: list[str]) -> int:
        return self.repository.delete_leads(list(dict.fromkeys(lead_ids)))
