"""
Adapter: Transaction repository.

Implements TransactionRepository port. Closing a transaction is a
conditional UPDATE on ``status = 'pending'``; the caller settles the
balance only when the update actually took.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import (
    NewTransaction,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from app.domain.brokerage.ledger import to_currency
from app.domain.brokerage.ports import TransactionRepository
from app.infrastructure.brokerage.models import TransactionRow
from app.shared.clock import utcnow


def _to_entity(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        transaction_type=TransactionType(row.transaction_type),
        amount=to_currency(row.amount),
        method=row.method,
        status=TransactionStatus(row.status),
        created_at=row.created_at,
        transaction_ref=row.transaction_ref,
        payment_notes=row.payment_notes,
        withdrawal_address=row.withdrawal_address,
        description=row.description,
        admin_notes=row.admin_notes,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        completed_at=row.completed_at,
    )


class TransactionRepositoryAdapter(TransactionRepository):
    """SQLAlchemy implementation of the transaction repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(
        self, transaction_id: int, for_update: bool = False
    ) -> Optional[Transaction]:
        stmt = select(TransactionRow).where(TransactionRow.id == transaction_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_by_user(self, user_id: int) -> list[Transaction]:
        rows = self._session.execute(
            select(TransactionRow)
            .where(TransactionRow.user_id == user_id)
            .order_by(TransactionRow.created_at.desc(), TransactionRow.id.desc())
        ).scalars()
        return [_to_entity(row) for row in rows]

    def list_all(self, status: Optional[TransactionStatus] = None) -> list[Transaction]:
        stmt = select(TransactionRow)
        if status is not None:
            stmt = stmt.where(TransactionRow.status == status.value)
        rows = self._session.execute(
            stmt.order_by(TransactionRow.created_at.desc(), TransactionRow.id.desc())
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(self, transaction: NewTransaction) -> Transaction:
        row = TransactionRow(
            user_id=transaction.user_id,
            transaction_type=transaction.transaction_type.value,
            amount=to_currency(transaction.amount),
            method=transaction.method,
            status=transaction.status.value,
            transaction_ref=transaction.transaction_ref,
            payment_notes=transaction.payment_notes,
            withdrawal_address=transaction.withdrawal_address,
            description=transaction.description,
            created_at=utcnow(),
            completed_at=transaction.completed_at,
        )
        self._session.add(row)
        self._session.flush()
        return _to_entity(row)

    def close(
        self,
        transaction_id: int,
        status: TransactionStatus,
        closed_at: datetime,
        reviewed_by: Optional[int] = None,
        admin_notes: Optional[str] = None,
    ) -> bool:
        if status is TransactionStatus.PENDING:
            raise ValueError("A transaction can only be closed as completed or failed")

        values: dict[str, Any] = {"status": status.value}
        if status is TransactionStatus.COMPLETED:
            values["completed_at"] = closed_at
        if reviewed_by is not None:
            values["reviewed_by"] = reviewed_by
            values["reviewed_at"] = closed_at
        if admin_notes is not None:
            values["admin_notes"] = admin_notes

        result = self._session.execute(
            update(TransactionRow)
            .where(
                TransactionRow.id == transaction_id,
                TransactionRow.status == TransactionStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
