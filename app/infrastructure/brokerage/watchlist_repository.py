"""
Adapter: Watchlist repository.

Implements WatchlistRepository port. A unique constraint on
(user_id, asset_id) keeps one entry per asset and user.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import WatchlistItem
from app.domain.brokerage.errors import DuplicateWatchlistItemError
from app.domain.brokerage.ports import WatchlistRepository
from app.infrastructure.brokerage.models import WatchlistItemRow
from app.shared.clock import utcnow


def _to_entity(row: WatchlistItemRow) -> WatchlistItem:
    return WatchlistItem(
        id=row.id,
        user_id=row.user_id,
        asset_id=row.asset_id,
        created_at=row.created_at,
    )


class WatchlistRepositoryAdapter(WatchlistRepository):
    """SQLAlchemy implementation of the watchlist repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, item_id: int) -> Optional[WatchlistItem]:
        row = self._session.get(WatchlistItemRow, item_id)
        return _to_entity(row) if row else None

    def find(self, user_id: int, asset_id: int) -> Optional[WatchlistItem]:
        row = self._session.execute(
            select(WatchlistItemRow).where(
                WatchlistItemRow.user_id == user_id,
                WatchlistItemRow.asset_id == asset_id,
            )
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_by_user(self, user_id: int) -> list[WatchlistItem]:
        rows = self._session.execute(
            select(WatchlistItemRow)
            .where(WatchlistItemRow.user_id == user_id)
            .order_by(WatchlistItemRow.id)
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(self, user_id: int, asset_id: int) -> WatchlistItem:
        row = WatchlistItemRow(user_id=user_id, asset_id=asset_id, created_at=utcnow())
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateWatchlistItemError(user_id, asset_id) from exc
        return _to_entity(row)

    def delete(self, item_id: int) -> bool:
        row = self._session.get(WatchlistItemRow, item_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
