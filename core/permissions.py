"""
Role capability table.

Every operation consults this table once instead of comparing role strings
inline. Adding a role or moving a permission only touches CAPABILITIES.
"""
from dataclasses import dataclass, fields

from core.constants import UserRole
from core.exceptions import PermissionDeniedError


@dataclass(frozen=True)
class Capabilities:
    can_manage_residents: bool = False
    can_edit_roles: bool = False
    can_manage_fees: bool = False
    can_record_payments: bool = False
    can_view_balances: bool = False
    can_file_complaints: bool = False
    can_review_complaints: bool = False
    can_view_evidence: bool = False
    can_report_incidents: bool = False
    can_assign_incidents: bool = False
    can_update_incident_status: bool = False
    can_delete_incidents: bool = False
    can_view_all_incidents: bool = False
    can_view_audit_log: bool = False
    can_review_registrations: bool = False
    can_manage_expenses: bool = False


CAPABILITIES = {
    UserRole.SYNDIC: Capabilities(
        can_manage_residents=True,
        can_edit_roles=True,
        can_manage_fees=True,
        can_record_payments=True,
        can_view_balances=True,
        can_review_complaints=True,
        can_view_evidence=True,
        can_report_incidents=True,
        can_assign_incidents=True,
        can_update_incident_status=True,
        can_delete_incidents=True,
        can_view_all_incidents=True,
        can_view_audit_log=True,
        can_review_registrations=True,
        can_manage_expenses=True,
    ),
    UserRole.GUARD: Capabilities(
        can_report_incidents=True,
        can_view_all_incidents=True,
    ),
    UserRole.RESIDENT: Capabilities(
        can_file_complaints=True,
        can_report_incidents=True,
    ),
}

CAPABILITY_NAMES = frozenset(f.name for f in fields(Capabilities))

# Human-readable reasons used in PermissionDeniedError messages
DENIED_MESSAGES = {
    'can_manage_residents': "Only syndics can manage residents",
    'can_edit_roles': "Only syndics can edit roles",
    'can_manage_fees': "Only syndics can manage fees",
    'can_record_payments': "Only syndics can record payments",
    'can_view_balances': "Only syndics can view balances",
    'can_file_complaints': "Only residents can create complaints",
    'can_review_complaints': "Only syndics can update complaint status",
    'can_view_evidence': "Only syndics can view complaint evidence",
    'can_report_incidents': "You cannot report incidents",
    'can_assign_incidents': "Only syndics can assign incidents",
    'can_update_incident_status': "Only syndics can change incident status",
    'can_delete_incidents': "Only syndics can delete incidents",
    'can_view_all_incidents': "You can only view your own incidents",
    'can_view_audit_log': "Only syndics can view the audit log",
    'can_review_registrations': "Only syndics can review registration requests",
    'can_manage_expenses': "Only syndics can manage expenses",
}


def capabilities_for(role) -> Capabilities:
    """Capabilities of a role; unknown roles get nothing"""
    return CAPABILITIES.get(role, Capabilities())


def has_capability(ctx, name: str) -> bool:
    if name not in CAPABILITY_NAMES:
        raise KeyError(f"Unknown capability: {name}")
    return getattr(capabilities_for(ctx.role), name)


def require_capability(ctx, name: str):
    """Raise PermissionDeniedError unless the context's role has the capability"""
    if not has_capability(ctx, name):
        raise PermissionDeniedError(DENIED_MESSAGES.get(name), code="FORBIDDEN")
