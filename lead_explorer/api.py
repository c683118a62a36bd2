"""
FastAPI endpoints for Lead Explorer Domain

Provides REST API for lead submission, review, status changes and deletion.
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session, sessionmaker

from core.audit import AuditLogger
from core.auth import CurrentSession
from core.config import settings
from core.logging import get_logger
from core.rate_limit import default_limit, limiter
from core.rbac import Action, require_action
from database.models import AuditAction
from database.session import get_db

from .preview import update_lead_preview
from .schemas import (
    BulkDeleteLeadsSchema,
    CreateLeadSchema,
    LeadEventResponseSchema,
    LeadResponseSchema,
    MessageResponseSchema,
    UpdateLeadSchema,
    UpdateLeadStatusSchema,
)
from .service import LeadService

# Initialize logger
logger = get_logger("lead_explorer_api", domain="lead_explorer")

# Create router
router = APIRouter(prefix="/leads", tags=["leads"])


@router.get("", response_model=list[LeadResponseSchema])
@limiter.limit(default_limit)
def list_leads(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    va_id: Optional[str] = Query(None),
    make: Optional[str] = Query(None),
    session: CurrentSession = Depends(require_action(Action.VIEW_LEADS)),
    db: Session = Depends(get_db),
):
    """
    List leads, newest first.

    Filters are ignored when empty or "ALL". VA sessions only see their own leads.
    """
    filters = {"status": status_filter, "va_id": va_id, "make": make}
    return LeadService(db).list_leads(filters, session.user_id, session.role)


@router.post("", response_model=LeadResponseSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def create_lead(
    request: Request,
    lead_data: CreateLeadSchema,
    background_tasks: BackgroundTasks,
    session: CurrentSession = Depends(require_action(Action.SUBMIT_LEAD)),
    db: Session = Depends(get_db),
):
    """
    Submit a new lead.

    - VA submitters are assigned to their own VA record
    - Duplicates (same listing, or same vehicle at a similar price recently) return 409
    - A preview image is fetched in the background
    """
    logger.info(f"Creating new lead {lead_data.year} {lead_data.make} {lead_data.model}")

    lead = LeadService(db).create_lead(lead_data.model_dump(), session.user_id)

    if settings.enable_preview_fetch:
        background_tasks.add_task(
            update_lead_preview, lead.id, lead.source_url, sessionmaker(bind=db.get_bind())
        )

    AuditLogger(db, request).record(
        AuditAction.CREATE, session.user_id, "lead", lead.id, f"{lead.year} {lead.make} {lead.model}"
    )
    return lead


@router.delete("", response_model=MessageResponseSchema)
@limiter.limit(default_limit)
def delete_leads(
    request: Request,
    data: BulkDeleteLeadsSchema,
    session: CurrentSession = Depends(require_action(Action.DELETE_LEAD)),
    db: Session = Depends(get_db),
):
    deleted = LeadService(db).delete_leads(data.ids)
    AuditLogger(db, request).record(
        AuditAction.DELETE, session.user_id, "lead", None, f"Bulk deleted {deleted} leads"
    )
    return MessageResponseSchema(message=f"Deleted {deleted} leads")


@router.get("/{lead_id}", response_model=LeadResponseSchema)
@limiter.limit(default_limit)
def get_lead(
    request: Request,
    lead_id: str,
    session: CurrentSession = Depends(require_action(Action.VIEW_LEADS)),
    db: Session = Depends(get_db),
):
    return LeadService(db).get_visible_lead(lead_id, session.user_id, session.role)


@router.patch("/{lead_id}", response_model=LeadResponseSchema)
@limiter.limit(default_limit)
def update_lead(
    request: Request,
    lead_id: str,
    data: UpdateLeadSchema,
    session: CurrentSession = Depends(require_action(Action.EDIT_LEAD)),
    db: Session = Depends(get_db),
):
    """Edit lead fields; profit and any unpaid commission are recomputed"""
    updates = data.model_dump(exclude_unset=True)
    lead = LeadService(db).update_lead(lead_id, updates)
    AuditLogger(db, request).record(AuditAction.UPDATE, session.user_id, "lead", lead_id, sorted(updates))
    return lead


@router.patch("/{lead_id}/status", response_model=LeadResponseSchema)
@limiter.limit(default_limit)
def update_lead_status(
    request: Request,
    lead_id: str,
    data: UpdateLeadStatusSchema,
    session: CurrentSession = Depends(require_action(Action.CHANGE_LEAD_STATUS)),
    db: Session = Depends(get_db),
):
    """Move a lead through the pipeline; SOLD creates the VA's commission"""
    lead = LeadService(db).update_status(lead_id, data.status, session.user_id, session.role, notes=data.notes)
    AuditLogger(db, request).record(
        AuditAction.STATUS_CHANGE, session.user_id, "lead", lead_id, f"Status changed to {data.status.value}"
    )
    return lead


@router.get("/{lead_id}/events", response_model=list[LeadEventResponseSchema])
@limiter.limit(default_limit)
def get_lead_events(
    request: Request,
    lead_id: str,
    session: CurrentSession = Depends(require_action(Action.VIEW_LEADS)),
    db: Session = Depends(get_db),
):
    """Status history, newest first"""
    service = LeadService(db)
    service.get_visible_lead(lead_id, session.user_id, session.role)
    return service.get_lead_events(lead_id)


@router.delete("/{lead_id}", response_model=MessageResponseSchema)
@limiter.limit(default_limit)
def delete_lead(
    request: Request,
    lead_id: str,
    session: CurrentSession = Depends(require_action(Action.DELETE_LEAD)),
    db: Session = Depends(get_db),
):
    LeadService(db).delete_lead(lead_id)
    AuditLogger(db, request).record(AuditAction.DELETE, session.user_id, "lead", lead_id)
    return MessageResponseSchema(message="Lead deleted successfully")
