"""
Adapter: KYC document repository.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import KycDocument, VerificationStatus
from app.domain.brokerage.ports import KycDocumentRepository
from app.infrastructure.brokerage.models import KycDocumentRow
from app.shared.clock import utcnow


def _to_entity(row: KycDocumentRow) -> KycDocument:
    return KycDocument(
        id=row.id,
        user_id=row.user_id,
        document_type=row.document_type,
        document_number=row.document_number,
        verification_status=VerificationStatus(row.verification_status),
        submitted_at=row.submitted_at,
        expiry_date=row.expiry_date,
        rejection_reason=row.rejection_reason,
    )


class KycDocumentRepositoryAdapter(KycDocumentRepository):
    """SQLAlchemy implementation of the KYC document repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, document_id: int) -> Optional[KycDocument]:
        row = self._session.execute(
            select(KycDocumentRow)
            .where(KycDocumentRow.id == document_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_by_user(self, user_id: int) -> list[KycDocument]:
        rows = self._session.execute(
            select(KycDocumentRow)
            .where(KycDocumentRow.user_id == user_id)
            .order_by(KycDocumentRow.submitted_at.desc(), KycDocumentRow.id.desc())
        ).scalars()
        return [_to_entity(row) for row in rows]

    def list_all(
        self, status: Optional[VerificationStatus] = None
    ) -> list[KycDocument]:
        stmt = select(KycDocumentRow)
        if status is not None:
            stmt = stmt.where(KycDocumentRow.verification_status == status.value)
        rows = self._session.execute(
            stmt.order_by(KycDocumentRow.submitted_at, KycDocumentRow.id)
        ).scalars()
        return [_to_entity(row) for row in rows]

    def add(
        self,
        user_id: int,
        document_type: str,
        document_number: str,
        expiry_date: Optional[str],
    ) -> KycDocument:
        row = KycDocumentRow(
            user_id=user_id,
            document_type=document_type,
            document_number=document_number,
            expiry_date=expiry_date,
            verification_status=VerificationStatus.PENDING.value,
            submitted_at=utcnow(),
        )
        self._session.add(row)
        self._session.flush()
        return _to_entity(row)

    def set_verification(
        self,
        document_id: int,
        status: VerificationStatus,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        result = self._session.execute(
            update(KycDocumentRow)
            .where(
                KycDocumentRow.id == document_id,
                KycDocumentRow.verification_status == VerificationStatus.PENDING.value,
            )
            .values(verification_status=status.value, rejection_reason=rejection_reason)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
