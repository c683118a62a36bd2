"""
System settings and audit log API endpoints (SUPERADMIN only)
"""
from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.audit import AuditLogger, list_audit_logs
from core.auth import CurrentSession
from core.exceptions import NotFoundError, ValidationError
from core.logging import get_logger
from core.rate_limit import default_limit, limiter
from core.rbac import Action, require_action
from database.models import AuditAction
from database.session import get_db

from .repository import SettingsRepository
from .schemas import AuditLogResponseSchema, SettingResponseSchema, SettingUpdateSchema

logger = get_logger("system_settings_api", domain="system_settings")

router = APIRouter(tags=["settings"])


def validate_setting_value(key: str, value: str) -> None:
    """Reject values that typed readers could not use"""
    if key == "commission_percent":
        try:
            rate = Decimal(value)
        except InvalidOperation:
            raise ValidationError("Commission percent must be a number", field="value")
        if rate < 0 or rate > 1:
            raise ValidationError("Commission percent must be a fraction between 0 and 1", field="value")
    elif key in ("session_timeout_hours", "magic_link_expiry_minutes"):
        if not value.isdigit() or int(value) < 1:
            raise ValidationError(f"{key} must be a positive integer", field="value")


@router.get("/settings", response_model=dict[str, str])
@limiter.limit(default_limit)
def get_all_settings(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.MANAGE_SETTINGS)),
    db: Session = Depends(get_db),
):
    return SettingsRepository(db).all()


@router.get("/settings/{key}", response_model=SettingResponseSchema)
@limiter.limit(default_limit)
def get_setting(
    request: Request,
    key: str,
    session: CurrentSession = Depends(require_action(Action.MANAGE_SETTINGS)),
    db: Session = Depends(get_db),
):
    setting = SettingsRepository(db).get_setting(key)
    if not setting:
        raise NotFoundError("Setting", key)
    return setting


@router.put("/settings/{key}", response_model=SettingResponseSchema)
@limiter.limit(default_limit)
def update_setting(
    request: Request,
    key: str,
    data: SettingUpdateSchema,
    session: CurrentSession = Depends(require_action(Action.MANAGE_SETTINGS)),
    db: Session = Depends(get_db),
):
    validate_setting_value(key, data.value)
    setting = SettingsRepository(db).set(key, data.value)
    AuditLogger(db, request).record(AuditAction.UPDATE, session.user_id, "setting", key, f"{key}={data.value}")
    return setting


@router.get("/audit-logs", response_model=list[AuditLogResponseSchema])
@limiter.limit(default_limit)
def get_audit_logs(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    session: CurrentSession = Depends(require_action(Action.VIEW_AUDIT_LOGS)),
    db: Session = Depends(get_db),
):
    """Most recent audit entries first"""
    return list_audit_logs(db, limit=limit)
