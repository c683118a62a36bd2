"""
Commission service

Creates commissions when leads are sold, keeps unpaid amounts in step with
lead profit, records payouts and exports the ledger as CSV.
"""

import csv
import io
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from core.config import settings
from core.exceptions import NotFoundError
from core.logging import get_logger
from core.utils import quantize_money, to_decimal, utc_now
from database.models import VA, Commission, Lead
from system_settings.repository import SettingsRepository

logger = get_logger("commission_service", domain="commissions")

CSV_HEADERS = ["Lead ID", "VA Name", "Vehicle", "Commission Amount", "Status", "Created Date"]


def calculate_commission(profit, rate) -> Decimal:
    """Commission amount rounded to cents and floored at zero"""
    amount = to_decimal(profit, Decimal("0")) * to_decimal(rate, Decimal("0"))
    return quantize_money(max(Decimal("0"), amount))


class CommissionService:
    """Service for commission lifecycle operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_effective_rate(self, va: Optional[VA]) -> Decimal:
        """
        Resolve the commission rate for a VA

        The VA's own percentage wins; otherwise the global commission_percent
        setting; otherwise the configured default.
        """
        if va is not None and va.commission_percentage is not None:
            return to_decimal(va.commission_percentage)

        default = Decimal(str(settings.default_commission_percent))
        return SettingsRepository(self.db).get_decimal("commission_percent", default)

    def get_by_lead(self, lead_id: str) -> Optional[Commission]:
        return self.db.query(Commission).filter(Commission.lead_id == lead_id).first()

    def create_commission_for_lead(self, lead: Lead, commit: bool = True) -> Optional[Commission]:
        """
        Create the commission for a sold lead

        Idempotent: an existing commission is returned unchanged. Leads
        without a VA get no commission.
        """
        existing = self.get_by_lead(lead.id)
        if existing:
            return existing

        if not lead.va_id:
            logger.info(f"No VA assigned to lead {lead.id}, skipping commission creation")
            return None

        va = self.db.query(VA).filter(VA.id == lead.va_id).first()
        rate = self.get_effective_rate(va)

        commission = Commission(
            lead_id=lead.id,
            va_id=lead.va_id,
            amount=calculate_commission(lead.estimated_profit, rate),
            is_due=True,
            is_paid=False,
        )
        self.db.add(commission)

        if commit:
            try:
                self.db.commit()
                self.db.refresh(commission)
            except IntegrityError:
                # Created concurrently for the same lead
                self.db.rollback()
                return self.get_by_lead(lead.id)
        else:
            self.db.flush()

        logger.info(f"Created commission for lead {lead.id}: {commission.amount} at rate {rate}")
        return commission

    def recalculate_commission(self, lead_id: str, commit: bool = True) -> Optional[Commission]:
        """
        Recompute an unpaid commission from current profit and rate

        An unpaid commission follows the lead's current VA and that VA's rate.
        """
        lead = self.db.query(Lead).filter(Lead.id == lead_id).first()
        if not lead:
            raise NotFoundError("Lead", lead_id)

        commission = self.get_by_lead(lead_id)
        if not commission or commission.is_paid:
            return commission

        if commission.va_id != lead.va_id:
            logger.info(f"Reassigning commission for lead {lead_id} from VA {commission.va_id} to {lead.va_id}")
            commission.va_id = lead.va_id

        va = self.db.query(VA).filter(VA.id == commission.va_id).first() if commission.va_id else None
        commission.amount = calculate_commission(lead.estimated_profit, self.get_effective_rate(va))
        commission.updated_at = utc_now()

        if commit:
            self.db.commit()
            self.db.refresh(commission)

        logger.info(f"Recalculated commission for lead {lead_id}: {commission.amount}")
        return commission

    def mark_paid(self, commission_id: str, user_id: str) -> Commission:
        commission = self.db.query(Commission).filter(Commission.id == commission_id).first()
        if not commission:
            raise NotFoundError("Commission", commission_id)

        if commission.is_paid:
            return commission

        try:
            commission.is_paid = True
            commission.paid_at = utc_now()
            commission.paid_by = user_id
            self.db.commit()
            self.db.refresh(commission)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error marking commission {commission_id} paid: {e}")
            raise

        logger.info(f"Commission {commission_id} marked paid by {user_id}")
        return commission

    def list_commissions(self, lead_id: Optional[str] = None) -> list[Commission]:
        """Due and unpaid commissions, or the commission of a single lead"""
        query = self.db.query(Commission).options(joinedload(Commission.va), joinedload(Commission.lead))

        if lead_id:
            query = query.filter(Commission.lead_id == lead_id)
        else:
            query = query.filter(Commission.is_due.is_(True), Commission.is_paid.is_(False))

        return query.order_by(Commission.created_at.desc()).all()

    def list_for_va(self, va_id: str) -> list[Commission]:
        return (
            self.db.query(Commission)
            .options(joinedload(Commission.lead))
            .filter(Commission.va_id == va_id)
            .order_by(Commission.created_at.desc())
            .all()
        )

    def export_commissions_csv(self) -> str:
        commissions = (
            self.db.query(Commission)
            .options(joinedload(Commission.va), joinedload(Commission.lead))
            .order_by(Commission.created_at.desc())
            .all()
        )

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)

        for commission in commissions:
            lead = commission.lead
            writer.writerow(
                [
                    commission.lead_id,
                    commission.va.name if commission.va else "Unknown",
                    f"{lead.year} {lead.make} {lead.model}" if lead else "",
                    f"${quantize_money(to_decimal(commission.amount))}",
                    "Paid" if commission.is_paid else "Due",
                    commission.created_at.date().isoformat() if commission.created_at else "",
                ]
            )

        return output.getvalue()
