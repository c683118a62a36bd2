"""
Commission API endpoints

Ledger listing, payout marking, recalculation and CSV export for
administrators; a read-only view of their own commissions for VAs.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from core.audit import AuditLogger
from core.auth import CurrentSession
from core.logging import get_logger
from core.rate_limit import default_limit, limiter
from core.rbac import Action, require_action
from core.utils import utc_now
from database.models import VA, AuditAction
from database.session import get_db

from .schemas import CommissionMessageSchema, CommissionResponseSchema
from .service import CommissionService

logger = get_logger("commissions_api", domain="commissions")

router = APIRouter(prefix="/commissions", tags=["commissions"])


@router.get("", response_model=list[CommissionResponseSchema])
@limiter.limit(default_limit)
def list_commissions(
    request: Request,
    lead_id: Optional[str] = Query(None),
    session: CurrentSession = Depends(require_action(Action.MANAGE_COMMISSIONS)),
    db: Session = Depends(get_db),
):
    """Due and unpaid commissions, or the commission of one lead"""
    return CommissionService(db).list_commissions(lead_id=lead_id)


@router.get("/mine", response_model=list[CommissionResponseSchema])
@limiter.limit(default_limit)
def list_my_commissions(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.VIEW_OWN_COMMISSIONS)),
    db: Session = Depends(get_db),
):
    va = db.query(VA).filter(VA.user_id == session.user_id).first()
    if not va:
        return []
    return CommissionService(db).list_for_va(va.id)


@router.get("/export.csv")
@limiter.limit(default_limit)
def export_commissions(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.MANAGE_COMMISSIONS)),
    db: Session = Depends(get_db),
):
    """Export all commissions as a CSV attachment"""
    csv_content = CommissionService(db).export_commissions_csv()
    filename = f"commissions-{utc_now().date().isoformat()}.csv"

    AuditLogger(db, request).record(AuditAction.EXPORT, session.user_id, "commission", None, filename)

    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/mark-paid/{commission_id}", response_model=CommissionResponseSchema)
@limiter.limit(default_limit)
def mark_commission_paid(
    request: Request,
    commission_id: str,
    session: CurrentSession = Depends(require_action(Action.MANAGE_COMMISSIONS)),
    db: Session = Depends(get_db),
):
    commission = CommissionService(db).mark_paid(commission_id, session.user_id)
    AuditLogger(db, request).record(AuditAction.MARK_PAID, session.user_id, "commission", commission_id)
    return commission


@router.post("/recalculate/{lead_id}", response_model=CommissionMessageSchema)
@limiter.limit(default_limit)
def recalculate_commission(
    request: Request,
    lead_id: str,
    session: CurrentSession = Depends(require_action(Action.MANAGE_COMMISSIONS)),
    db: Session = Depends(get_db),
):
    commission = CommissionService(db).recalculate_commission(lead_id)

    if commission is None:
        return CommissionMessageSchema(message="No commission for this lead")
    if commission.is_paid:
        return CommissionMessageSchema(message="Commission already paid, not recalculated")
    return CommissionMessageSchema(message="Commission recalculated")
