"""
Audit trail writer.

Entries are written in a separate session bound to the same engine, so an
audit failure never rolls back or fails the request that triggered it.
"""

from typing import Any, Optional, Union

from fastapi import Request
from sqlalchemy.orm import Session

from core.logging import get_logger
from database.models import AuditAction, AuditLog

logger = get_logger("audit", domain="security")


class AuditLogger:
    """Records user actions to the audit_logs table"""

    def __init__(self, db: Session, request: Optional[Request] = None):
        self.db = db
        self.ip_address = request.client.host if request is not None and request.client else None
        self.user_agent = request.headers.get("User-Agent") if request is not None else None

    def record(
        self,
        action: Union[AuditAction, str],
        user_id: Optional[str],
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        """Write an audit entry; failures are logged and swallowed"""
        action_value = action.value if isinstance(action, AuditAction) else str(action)

        audit_session = Session(bind=self.db.get_bind())
        try:
            audit_session.add(
                AuditLog(
                    user_id=user_id,
                    action=action_value,
                    resource_type=resource_type,
                    resource_id=resource_id,
                    details=str(details) if details is not None else None,
                    ip_address=self.ip_address,
                    user_agent=self.user_agent,
                )
            )
            audit_session.commit()
        except Exception as e:
            audit_session.rollback()
            logger.error(f"Failed to write audit log for action {action_value}: {e}")
            # Don't raise - audit logging failure should not break the main operation
        finally:
            audit_session.close()


def list_audit_logs(db: Session, limit: int = 100) -> list[AuditLog]:
    """Most recent audit entries first"""
    return db.query(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit).all()
