"""
Repository pattern for Lead database operations.

Provides database operations with proper error handling, filtering,
duplicate lookups and transactional deletes.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from core.config import settings
from core.exceptions import ValidationError
from core.logging import get_logger
from core.utils import normalize_url, quantize_money, to_decimal, utc_now
from database.models import Commission, Lead, LeadEvent, LeadStatus

logger = get_logger("lead_explorer_repository")

PRICE_FIELDS = ("asking_price", "estimated_sale_price", "expenses_estimate")
EDITABLE_FIELDS = (
    "va_id",
    "make",
    "model",
    "year",
    "mileage",
    "asking_price",
    "estimated_sale_price",
    "expenses_estimate",
    "source_url",
    "seller_contact",
    "location",
    "preview_image_url",
)
ALL_FILTER = "ALL"


def calculate_profit(estimated_sale_price: Any, asking_price: Any, expenses_estimate: Any = None) -> Decimal:
    """Estimated profit, floored at zero"""
    profit = to_decimal(estimated_sale_price, Decimal("0")) - to_decimal(asking_price, Decimal("0"))
    profit -= to_decimal(expenses_estimate, Decimal("0"))
    return quantize_money(max(Decimal("0"), profit))


class LeadRepository:
    """Repository for Lead CRUD operations"""

    def __init__(self, db: Session):
        self.db = db

    def create_lead(self, lead_data: dict[str, Any], user_id: Optional[str]) -> Lead:
        """Create a new lead with its initial status event"""
        try:
            lead = Lead(**{field: lead_data.get(field) for field in EDITABLE_FIELDS if field in lead_data})
            lead.expenses_estimate = to_decimal(lead.expenses_estimate, Decimal("0"))
            lead.estimated_profit = calculate_profit(
                lead.estimated_sale_price, lead.asking_price, lead.expenses_estimate
            )
            lead.normalized_source_url = normalize_url(lead.source_url)
            lead.status = LeadStatus.PENDING

            self.db.add(lead)
            self.db.flush()

            self.db.add(LeadEvent(lead_id=lead.id, user_id=user_id, from_status=None, to_status=lead.status))
            self.db.commit()
            self.db.refresh(lead)

            logger.info(f"Created lead {lead.id} - {lead.year} {lead.make} {lead.model}, va_id: {lead.va_id}")

            return lead

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating lead: {e}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error creating lead: {e}")
            raise

    def get_lead_by_id(self, lead_id: str) -> Optional[Lead]:
        """Get lead by ID"""
        return self.db.query(Lead).options(joinedload(Lead.va)).filter(Lead.id == lead_id).first()

    def get_lead_by_normalized_url(self, normalized_url: str) -> Optional[Lead]:
        return self.db.query(Lead).filter(Lead.normalized_source_url == normalized_url).first()

    def find_similar_lead(self, make: str, model: str, asking_price: Any) -> Optional[Lead]:
        """
        Find a recent lead for the same vehicle at a similar asking price

        Matches identical make and model, an asking price within the configured
        tolerance of the submitted price, created inside the duplicate window.
        """
        price = to_decimal(asking_price)
        if price is None:
            return None

        tolerance = Decimal(str(settings.duplicate_price_tolerance))
        window_start = utc_now() - timedelta(days=settings.duplicate_window_days)

        return (
            self.db.query(Lead)
            .filter(
                Lead.make == make,
                Lead.model == model,
                Lead.asking_price >= price * (1 - tolerance),
                Lead.asking_price <= price * (1 + tolerance),
                Lead.created_at >= window_start,
            )
            .order_by(Lead.created_at.desc())
            .first()
        )

    def list_leads(
        self,
        status: Optional[str] = None,
        va_id: Optional[str] = None,
        make: Optional[str] = None,
    ) -> list[Lead]:
        """List leads newest first; empty or "ALL" filters are ignored"""
        query = self.db.query(Lead).options(joinedload(Lead.va))

        if status and status != ALL_FILTER:
            try:
                query = query.filter(Lead.status == LeadStatus(status))
            except ValueError:
                raise ValidationError(f"Unknown lead status: {status}", field="status")

        if va_id and va_id != ALL_FILTER:
            query = query.filter(Lead.va_id == va_id)

        if make and make != ALL_FILTER:
            query = query.filter(Lead.make.ilike(f"%{make}%"))

        return query.order_by(Lead.created_at.desc()).all()

    def apply_updates(self, lead: Lead, updates: dict[str, Any]) -> Lead:
        """
        Apply field edits without committing

        Profit is recomputed when a price input changes and the normalized URL
        follows the source URL.
        """
        for field, value in updates.items():
            if field in EDITABLE_FIELDS:
                setattr(lead, field, value)

        if any(field in updates for field in PRICE_FIELDS):
            lead.expenses_estimate = to_decimal(lead.expenses_estimate, Decimal("0"))
            lead.estimated_profit = calculate_profit(
                lead.estimated_sale_price, lead.asking_price, lead.expenses_estimate
            )

        if "source_url" in updates:
            lead.normalized_source_url = normalize_url(lead.source_url)

        lead.updated_at = utc_now()
        return lead

    def set_status(self, lead: Lead, new_status: LeadStatus, user_id: Optional[str], notes: str = None) -> LeadEvent:
        """Change status and append the matching event without committing"""
        event = LeadEvent(lead_id=lead.id, user_id=user_id, from_status=lead.status, to_status=new_status, notes=notes)
        lead.status = new_status
        lead.updated_at = utc_now()
        self.db.add(event)
        return event

    def set_preview_image(self, lead_id: str, image_url: str) -> bool:
        lead = self.db.query(Lead).filter(Lead.id == lead_id).first()
        if not lead:
            return False

        lead.preview_image_url = image_url
        self.db.commit()
        return True

    def get_lead_events(self, lead_id: str) -> list[LeadEvent]:
        """Status history, newest first"""
        return (
            self.db.query(LeadEvent).filter(LeadEvent.lead_id == lead_id).order_by(LeadEvent.created_at.desc()).all()
        )

    def delete_leads(self, lead_ids: list[str]) -> int:
        """
        Hard delete leads with their events and commissions in one transaction

        Returns:
            Number of leads deleted
        """
        if not lead_ids:
            return 0

        try:
            self.db.query(LeadEvent).filter(LeadEvent.lead_id.in_(lead_ids)).delete(synchronize_session=False)
            self.db.query(Commission).filter(Commission.lead_id.in_(lead_ids)).delete(synchronize_session=False)
            deleted = self.db.query(Lead).filter(Lead.id.in_(lead_ids)).delete(synchronize_session=False)
            self.db.commit()

            logger.info(f"Deleted {deleted} leads")
            return deleted

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error deleting leads {lead_ids}: {e}")
            raise
