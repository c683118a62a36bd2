"""
Role-Based Access Control (RBAC) for CarLeads API endpoints

Provides:
- A closed set of actions and the roles allowed to perform each
- A single authorize(action, role) decision function
- A FastAPI dependency that enforces an action on a route
"""

from enum import Enum

from fastapi import Depends

from core.auth import CurrentSession, get_current_session
from core.exceptions import AuthorizationError
from core.logging import get_logger
from database.models import UserRole

logger = get_logger("rbac", domain="security")


class Action(Enum):
    """Protected actions"""

    # Session
    VIEW_SELF = "view_self"

    # Leads
    SUBMIT_LEAD = "submit_lead"
    VIEW_LEADS = "view_leads"
    EDIT_LEAD = "edit_lead"
    CHANGE_LEAD_STATUS = "change_lead_status"
    DELETE_LEAD = "delete_lead"

    # Commissions
    VIEW_OWN_COMMISSIONS = "view_own_commissions"
    MANAGE_COMMISSIONS = "manage_commissions"

    # Administration
    VIEW_VAS = "view_vas"
    MANAGE_VAS = "manage_vas"
    MANAGE_USERS = "manage_users"
    MANAGE_INVITES = "manage_invites"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_AUDIT_LOGS = "view_audit_logs"


ALL_ROLES = frozenset(UserRole)
ADMIN_ROLES = frozenset({UserRole.SUPERADMIN, UserRole.MANAGER})
SUPERADMIN_ONLY = frozenset({UserRole.SUPERADMIN})

# Action to allowed roles. Status changes are open to every session here and
# refined per transition by the lead transition policy.
ACTION_ROLES: dict[Action, frozenset[UserRole]] = {
    Action.VIEW_SELF: ALL_ROLES,
    Action.SUBMIT_LEAD: ALL_ROLES,
    Action.VIEW_LEADS: ALL_ROLES,
    Action.EDIT_LEAD: ADMIN_ROLES,
    Action.CHANGE_LEAD_STATUS: ALL_ROLES,
    Action.DELETE_LEAD: SUPERADMIN_ONLY,
    Action.VIEW_OWN_COMMISSIONS: frozenset({UserRole.VA}),
    Action.MANAGE_COMMISSIONS: SUPERADMIN_ONLY,
    Action.VIEW_VAS: ADMIN_ROLES,
    Action.MANAGE_VAS: SUPERADMIN_ONLY,
    Action.MANAGE_USERS: SUPERADMIN_ONLY,
    Action.MANAGE_INVITES: SUPERADMIN_ONLY,
    Action.MANAGE_SETTINGS: SUPERADMIN_ONLY,
    Action.VIEW_AUDIT_LOGS: SUPERADMIN_ONLY,
}


def authorize(action: Action, role: UserRole) -> bool:
    """
    Decide whether a role may perform an action

    Args:
        action: Requested action
        role: Role of the acting session

    Returns:
        bool: True if allowed
    """
    return role in ACTION_ROLES.get(action, frozenset())


def require_action(action: Action):
    """
    FastAPI dependency factory enforcing an action

    Missing session is rejected with 401 by get_current_session; a session
    whose role is not allowed is rejected with 403.
    """

    def dependency(session: CurrentSession = Depends(get_current_session)) -> CurrentSession:
        if not authorize(action, session.role):
            logger.warning(f"Access denied: user={session.user_id}, role={session.role.value}, action={action.value}")
            raise AuthorizationError()
        return session

    return dependency
