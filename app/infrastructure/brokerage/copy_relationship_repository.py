"""
Adapter: Copy relationship repository.

Implements CopyRelationshipRepository port. Rows must only be written
through the copy-relationship use cases so that the trader follower
count stays in step. Status changes and deletes are compare-and-swap
statements; only the caller whose statement matched may move the count.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import CopyRelationship, CopyStatus
from app.domain.brokerage.errors import CopyRelationshipNotFoundError
from app.domain.brokerage.ledger import to_currency
from app.domain.brokerage.ports import CopyRelationshipRepository
from app.infrastructure.brokerage.models import CopyRelationshipRow
from app.shared.clock import utcnow


def _to_entity(row: CopyRelationshipRow) -> CopyRelationship:
    return CopyRelationship(
        id=row.id,
        follower_id=row.follower_id,
        trader_id=row.trader_id,
        allocation_percentage=to_currency(row.allocation_percentage),
        status=CopyStatus(row.status),
        created_at=row.created_at,
    )


class CopyRelationshipRepositoryAdapter(CopyRelationshipRepository):
    """SQLAlchemy implementation of the copy relationship repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, relationship_id: int) -> Optional[CopyRelationship]:
        row = self._session.get(
            CopyRelationshipRow, relationship_id, populate_existing=True
        )
        return _to_entity(row) if row else None

    def find(self, follower_id: int, trader_id: int) -> Optional[CopyRelationship]:
        row = self._session.execute(
            select(CopyRelationshipRow)
            .where(
                CopyRelationshipRow.follower_id == follower_id,
                CopyRelationshipRow.trader_id == trader_id,
            )
            .order_by(CopyRelationshipRow.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_by_trader(
        self, trader_id: int, status: Optional[CopyStatus] = None
    ) -> list[CopyRelationship]:
        stmt = select(CopyRelationshipRow).where(
            CopyRelationshipRow.trader_id == trader_id
        )
        if status is not None:
            stmt = stmt.where(CopyRelationshipRow.status == status.value)
        rows = self._session.execute(stmt.order_by(CopyRelationshipRow.id)).scalars()
        return [_to_entity(row) for row in rows]

    def list_by_follower(self, follower_id: int) -> list[CopyRelationship]:
        rows = self._session.execute(
            select(CopyRelationshipRow)
            .where(CopyRelationshipRow.follower_id == follower_id)
            .order_by(CopyRelationshipRow.id)
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(
        self, follower_id: int, trader_id: int, allocation_percentage: Decimal
    ) -> CopyRelationship:
        row = CopyRelationshipRow(
            follower_id=follower_id,
            trader_id=trader_id,
            allocation_percentage=to_currency(allocation_percentage),
            status=CopyStatus.ACTIVE.value,
            created_at=utcnow(),
        )
        self._session.add(row)
        self._session.flush()
        return _to_entity(row)

    def set_allocation(
        self, relationship_id: int, allocation_percentage: Decimal
    ) -> CopyRelationship:
        row = self._session.get(CopyRelationshipRow, relationship_id)
        if row is None:
            raise CopyRelationshipNotFoundError(relationship_id)
        row.allocation_percentage = to_currency(allocation_percentage)
        self._session.flush()
        return _to_entity(row)

    def change_status(
        self, relationship_id: int, expected: CopyStatus, new: CopyStatus
    ) -> bool:
        result = self._session.execute(
            update(CopyRelationshipRow)
            .where(
                CopyRelationshipRow.id == relationship_id,
                CopyRelationshipRow.status == expected.value,
            )
            .values(status=new.value)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def delete(
        self, relationship_id: int, expected_status: Optional[CopyStatus] = None
    ) -> bool:
        stmt = delete(CopyRelationshipRow).where(
            CopyRelationshipRow.id == relationship_id
        )
        if expected_status is not None:
            stmt = stmt.where(CopyRelationshipRow.status == expected_status.value)
        result = self._session.execute(
            stmt.execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
