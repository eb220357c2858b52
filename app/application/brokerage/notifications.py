"""
Best-effort delivery of user notifications from use cases.
"""

import logging

from app.domain.brokerage.entities import NotificationType
from app.domain.brokerage.ports import NotificationPort

logger = logging.getLogger(__name__)


def send_notification(
    notifier: NotificationPort | None,
    user_id: int,
    subject: str,
    message: str,
    notification_type: NotificationType = NotificationType.GENERAL,
) -> None:
    """Notify a user, logging instead of raising on failure.

    Called only after the triggering unit of work has committed, so a
    delivery problem can never undo a ledger change.
    """
    if notifier is None:
        return
    try:
        notifier.notify(user_id, subject, message, notification_type)
    except Exception:
        logger.warning(
            "Notification %r to user_id=%d failed", subject, user_id, exc_info=True
        )
