"""
Adapter: Trader repository.

Implements TraderRepository port, including the follower count
cache that the copy-relationship use cases maintain.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import Trader
from app.domain.brokerage.errors import DuplicateTraderError, TraderNotFoundError
from app.domain.brokerage.ports import TraderRepository
from app.infrastructure.brokerage.models import TraderRow

logger = logging.getLogger(__name__)


def _to_entity(row: TraderRow) -> Trader:
    return Trader(
        id=row.id,
        user_id=row.user_id,
        bio=row.bio,
        win_rate=Decimal(row.win_rate),
        profit_30d=Decimal(row.profit_30d),
        rating=Decimal(row.rating),
        followers=row.followers,
        status=row.status,
    )


class TraderRepositoryAdapter(TraderRepository):
    """SQLAlchemy implementation of the trader repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _load(self, trader_id: int, for_update: bool = False) -> Optional[TraderRow]:
        stmt = select(TraderRow).where(TraderRow.id == trader_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, trader_id: int, for_update: bool = False) -> Optional[Trader]:
        row = self._load(trader_id, for_update=for_update)
        return _to_entity(row) if row else None

    def get_by_user_id(self, user_id: int) -> Optional[Trader]:
        row = self._session.execute(
            select(TraderRow).where(TraderRow.user_id == user_id)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_all(self) -> list[Trader]:
        rows = self._session.execute(
            select(TraderRow).order_by(TraderRow.followers.desc(), TraderRow.id)
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(self, user_id: int, bio: Optional[str]) -> Trader:
        row = TraderRow(
            user_id=user_id,
            bio=bio,
            win_rate=Decimal("0"),
            profit_30d=Decimal("0"),
            rating=Decimal("0"),
            followers=0,
            status="active",
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateTraderError(user_id) from exc
        return _to_entity(row)

    def change_followers(self, trader_id: int, delta: int) -> Trader:
        row = self._load(trader_id, for_update=True)
        if row is None:
            raise TraderNotFoundError(trader_id)

        updated = max(0, row.followers + delta)
        if updated != row.followers + delta:
            logger.warning(
                "Follower count for trader_id=%d would drop below zero (%d%+d); floored at 0",
                trader_id,
                row.followers,
                delta,
            )
        row.followers = updated
        self._session.flush()
        return _to_entity(row)
