"""
Audit Logging Helper Functions

Provides a centralized way to record domain actions.
"""

from audit.models import AuditLog
import logging

logger = logging.getLogger(__name__)


def log_action(ctx, action, resource_type, resource_id, description,
               residence_id=None, metadata=None):
    """
    Log an action to the audit log.

    Args:
        ctx: AuthContext of the actor, or None for system jobs
        action: Action type (AuditLog.ACTION_*)
        resource_type: Type of resource (AuditLog.RESOURCE_*)
        resource_id: ID of the resource
        description: Human-readable description
        residence_id: Residence the action belongs to (defaults to ctx.residence_id)
        metadata: Additional context data (optional)

    Returns:
        AuditLog instance, or None when logging failed

    Example:
        log_action(
            ctx,
            action=AuditLog.ACTION_SETTLE_FEES,
            resource_type=AuditLog.RESOURCE_FEE,
            resource_id=None,
            description="Settled 3 fee(s) by cash",
            metadata={'fee_ids': [1, 2, 3]},
        )
    """
    residence_id = residence_id or (ctx.residence_id if ctx else None)
    if not residence_id:
        logger.warning(f"Cannot log action {action}: no residence")
        return None

    try:
        audit_log = AuditLog.objects.create(
            residence_id=residence_id,
            user_id=ctx.user_id if ctx else None,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            ip_address=ctx.ip_address if ctx else None,
            metadata=metadata or {},
        )
        logger.info(f"Audit: user={ctx.user_id if ctx else 'system'} - {action} - {resource_type} #{resource_id}")
        return audit_log
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {e}", exc_info=True)
        return None
