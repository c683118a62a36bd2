"""
VA administration API Endpoints
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from account_management.schemas import (
    MessageResponse,
    UserResponse,
    VAAccountCreateRequest,
    VAAccountResponse,
    VACommissionUpdateRequest,
    VACreateRequest,
    VAResponse,
    VAUpdateRequest,
)
from account_management.va_service import VAService
from core.audit import AuditLogger
from core.auth import CurrentSession
from core.logging import get_logger
from core.rate_limit import default_limit, limiter
from core.rbac import Action, require_action
from database.models import AuditAction
from database.session import get_db
from notifications.email import notifier

logger = get_logger("va_api", domain="account_management")

router = APIRouter(prefix="/vas", tags=["vas"])


@router.get("", response_model=list[VAResponse])
@limiter.limit(default_limit)
def list_vas(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.VIEW_VAS)),
    db: Session = Depends(get_db),
):
    return VAService(db).list_vas()


@router.post("", response_model=VAResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def create_va(
    request: Request,
    data: VACreateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_VAS)),
    db: Session = Depends(get_db),
):
    va = VAService(db).create_va(
        name=data.name,
        user_id=data.user_id,
        commission_percentage=data.commission_percentage,
        timezone=data.timezone,
        notes=data.notes,
    )
    AuditLogger(db, request).record(AuditAction.CREATE, session.user_id, "va", va.id, f"Created VA: {va.name}")
    return va


@router.post("/create-account", response_model=VAAccountResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def create_va_account(
    request: Request,
    data: VAAccountCreateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_VAS)),
    db: Session = Depends(get_db),
):
    """
    Create a VA login with a generated password.

    The password is returned once in the response and handed to the welcome
    e-mail; it is not stored in clear anywhere.
    """
    user, va, password = VAService(db).create_va_account(data.email, data.name, data.commission_percentage)

    notifier.send_va_welcome(user.email, va.name, password)
    AuditLogger(db, request).record(
        AuditAction.CREATE_VA_ACCOUNT, session.user_id, "va", va.id, f"Created VA account: {user.email}"
    )

    return VAAccountResponse(
        user=UserResponse.model_validate(user),
        va=VAResponse.model_validate(va),
        password=password,
    )


@router.get("/{va_id}", response_model=VAResponse)
@limiter.limit(default_limit)
def get_va(
    request: Request,
    va_id: str,
    session: CurrentSession = Depends(require_action(Action.VIEW_VAS)),
    db: Session = Depends(get_db),
):
    return VAService(db).get_va(va_id)


@router.patch("/{va_id}", response_model=VAResponse)
@limiter.limit(default_limit)
def update_va(
    request: Request,
    va_id: str,
    data: VAUpdateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_VAS)),
    db: Session = Depends(get_db),
):
    va = VAService(db).update_va(va_id, data.model_dump(exclude_unset=True))
    AuditLogger(db, request).record(AuditAction.UPDATE, session.user_id, "va", va_id)
    return va


@router.patch("/{va_id}/commission", response_model=VAResponse)
@limiter.limit(default_limit)
def update_va_commission(
    request: Request,
    va_id: str,
    data: VACommissionUpdateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_VAS)),
    db: Session = Depends(get_db),
):
    va = VAService(db).set_commission_percentage(va_id, data.commission_percentage)
    AuditLogger(db, request).record(
        AuditAction.UPDATE, session.user_id, "va", va_id, f"Commission set to {data.commission_percentage}%"
    )
    return va


@router.delete("/{va_id}", response_model=MessageResponse)
@limiter.limit(default_limit)
def delete_va(
    request: Request,
    va_id: str,
    session: CurrentSession = Depends(require_action(Action.MANAGE_VAS)),
    db: Session = Depends(get_db),
):
    name = VAService(db).delete_va(va_id)
    AuditLogger(db, request).record(
        AuditAction.DELETE_VA_ACCOUNT, session.user_id, "va", va_id, f"Deleted VA account: {name}"
    )
    return MessageResponse(message="VA account deleted successfully")
