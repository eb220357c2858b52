"""
Use case: Mark in-app notifications as read.

Input: user_id, optional notification_id
Output: number of notifications that changed from unread to read
Side effects: the read flag is set; marking an already read
    notification changes nothing.
Failure cases: UserNotFoundError, NotificationNotFoundError (missing,
    or in another user's inbox).
"""

import logging
from typing import Optional

from app.domain.brokerage.errors import NotificationNotFoundError, UserNotFoundError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class MarkNotificationsReadUseCase:
    """Marks one notification, or a user's whole inbox, as read."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, user_id: int, notification_id: Optional[int] = None) -> int:
        """Mark notifications read.

        Args:
            user_id: Owner of the inbox.
            notification_id: A single notification; None for all of them.

        Returns:
            How many notifications were unread before this call.
        """
        with self._uow_factory() as uow:
            if uow.users.get(user_id) is None:
                raise UserNotFoundError(user_id)
            if notification_id is not None:
                notification = uow.notifications.get(notification_id)
                if notification is None or notification.user_id != user_id:
                    raise NotificationNotFoundError(notification_id)

            changed = uow.notifications.mark_read(user_id, notification_id)
            uow.commit()

        logger.debug("Marked %d notification(s) read for user_id=%d", changed, user_id)
        return changed
