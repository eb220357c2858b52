"""
Adapter: Trade repository.

Implements TradeRepository port. The pending -> executed transition
is a conditional UPDATE so that two concurrent executors of the same
trade cannot both claim it.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import NewTrade, Trade, TradeDirection, TradeStatus
from app.domain.brokerage.ledger import to_price, to_quantity
from app.domain.brokerage.ports import TradeRepository
from app.infrastructure.brokerage.models import TradeRow
from app.shared.clock import utcnow


def _to_entity(row: TradeRow) -> Trade:
    return Trade(
        id=row.id,
        user_id=row.user_id,
        asset_id=row.asset_id,
        direction=TradeDirection(row.direction),
        amount=to_quantity(row.amount),
        price=to_price(row.price),
        status=TradeStatus(row.status),
        created_at=row.created_at,
        executed_at=row.executed_at,
        copied_from_trade_id=row.copied_from_trade_id,
    )


class TradeRepositoryAdapter(TradeRepository):
    """SQLAlchemy implementation of the trade repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, trade_id: int, for_update: bool = False) -> Optional[Trade]:
        stmt = select(TradeRow).where(TradeRow.id == trade_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_by_user(self, user_id: int) -> list[Trade]:
        rows = self._session.execute(
            select(TradeRow)
            .where(TradeRow.user_id == user_id)
            .order_by(TradeRow.created_at.desc(), TradeRow.id.desc())
        ).scalars()
        return [_to_entity(row) for row in rows]

    def list_copies(self, original_trade_id: int) -> list[Trade]:
        rows = self._session.execute(
            select(TradeRow)
            .where(TradeRow.copied_from_trade_id == original_trade_id)
            .order_by(TradeRow.id)
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(self, trade: NewTrade) -> Trade:
        row = TradeRow(
            user_id=trade.user_id,
            asset_id=trade.asset_id,
            direction=trade.direction.value,
            amount=to_quantity(trade.amount),
            price=to_price(trade.price),
            status=trade.status.value,
            created_at=utcnow(),
            copied_from_trade_id=trade.copied_from_trade_id,
        )
        self._session.add(row)
        self._session.flush()
        return _to_entity(row)

    def mark_executed(self, trade_id: int, executed_at: datetime) -> bool:
        result = self._session.execute(
            update(TradeRow)
            .where(
                TradeRow.id == trade_id,
                TradeRow.status == TradeStatus.PENDING.value,
            )
            .values(status=TradeStatus.EXECUTED.value, executed_at=executed_at)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
