"""
Notification helpers.

Notifications are a side channel: a failure is logged and never breaks the
operation that triggered it.
"""
import logging

from core.constants import NotificationType
from notifications.models import Notification

logger = logging.getLogger(__name__)


def notify(user_id, title, message='', residence_id=None, type=NotificationType.INFO, action_data=None):
    """Create one notification; returns it, or None when it could not be stored"""
    try:
        return Notification.objects.create(
            user_id=user_id,
            residence_id=residence_id,
            type=type,
            title=title,
            message=message,
            action_data=action_data or {},
        )
    except Exception as e:
        logger.error(f"Failed to create notification for user {user_id}: {e}", exc_info=True)
        return None

