"""
Adapter: In-app notification repository.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import Notification, NotificationType
from app.domain.brokerage.ports import NotificationRepository
from app.infrastructure.brokerage.models import NotificationRow
from app.shared.clock import utcnow


def _to_entity(row: NotificationRow) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        message=row.message,
        notification_type=NotificationType(row.notification_type),
        read=row.read,
        created_at=row.created_at,
        action_url=row.action_url,
    )


class NotificationRepositoryAdapter(NotificationRepository):
    """SQLAlchemy implementation of the notification inbox."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, notification_id: int) -> Optional[Notification]:
        row = self._session.get(NotificationRow, notification_id, populate_existing=True)
        return _to_entity(row) if row else None

    def list_by_user(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        stmt = select(NotificationRow).where(NotificationRow.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationRow.read.is_(False))
        rows = self._session.execute(
            stmt.order_by(NotificationRow.created_at.desc(), NotificationRow.id.desc())
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
    ) -> Notification:
        row = NotificationRow(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type.value,
            read=False,
            action_url=action_url,
            created_at=utcnow(),
        )
        self._session.add(row)
        self._session.flush()
        return _to_entity(row)

    def mark_read(self, user_id: int, notification_id: Optional[int] = None) -> int:
        stmt = update(NotificationRow).where(
            NotificationRow.user_id == user_id,
            NotificationRow.read.is_(False),
        )
        if notification_id is not None:
            stmt = stmt.where(NotificationRow.id == notification_id)
        result = self._session.execute(
            stmt.values(read=True).execution_options(synchronize_session="fetch")
        )
        return result.rowcount
