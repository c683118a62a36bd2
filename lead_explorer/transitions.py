"""
Lead status transition policy.

Two policies share the same role rules: VAs never change status and only a
SUPERADMIN may move a lead to PAID. The strict policy additionally limits
moves to the edges of the sales pipeline graph.
"""

from typing import Optional

from core.config import settings
from database.models import LeadStatus, UserRole

PERMISSIVE = "permissive"
STRICT = "strict"

STRICT_TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    LeadStatus.PENDING: frozenset({LeadStatus.APPROVED, LeadStatus.REJECTED}),
    LeadStatus.APPROVED: frozenset({LeadStatus.PENDING, LeadStatus.CONTACTED, LeadStatus.REJECTED}),
    LeadStatus.CONTACTED: frozenset({LeadStatus.APPROVED, LeadStatus.BOUGHT, LeadStatus.REJECTED}),
    LeadStatus.BOUGHT: frozenset({LeadStatus.CONTACTED, LeadStatus.SOLD}),
    LeadStatus.SOLD: frozenset({LeadStatus.BOUGHT, LeadStatus.PAID}),
    LeadStatus.REJECTED: frozenset({LeadStatus.PENDING}),
    LeadStatus.PAID: frozenset(),
}


def can_transition_status(
    from_status: LeadStatus,
    to_status: LeadStatus,
    role: UserRole,
    policy: Optional[str] = None,
) -> bool:
    """
    Decide whether a role may move a lead between two statuses

    Args:
        from_status: Current status
        to_status: Requested status
        role: Role of the acting user
        policy: "permissive" or "strict"; defaults to the configured policy

    Returns:
        bool: True if the transition is allowed
    """
    if role == UserRole.VA:
        return False

    if to_status == LeadStatus.PAID and role != UserRole.SUPERADMIN:
        return False

    if (policy or settings.lead_transition_policy) == STRICT:
        return to_status in STRICT_TRANSITIONS.get(from_status, frozenset())

    return True
