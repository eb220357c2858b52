"""
Adapter: User repository.

Implements UserRepository port on top of a SQLAlchemy session.
Owns the only code path that writes ``users.balance``.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import (
    BalanceDirection,
    KycStatus,
    User,
    UserRole,
)
from app.domain.brokerage.errors import DuplicateAccountError, UserNotFoundError
from app.domain.brokerage.ledger import apply_balance_change, to_currency
from app.domain.brokerage.ports import UserRepository
from app.infrastructure.brokerage.models import UserRow
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)


def _to_entity(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        full_name=row.full_name,
        balance=to_currency(row.balance),
        kyc_status=KycStatus(row.kyc_status),
        role=UserRole(row.role),
        created_at=row.created_at,
    )


class UserRepositoryAdapter(UserRepository):
    """SQLAlchemy implementation of the user repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _load(self, user_id: int, for_update: bool = False) -> Optional[UserRow]:
        stmt = select(UserRow).where(UserRow.id == user_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, user_id: int, for_update: bool = False) -> Optional[User]:
        row = self._load(user_id, for_update=for_update)
        return _to_entity(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        row = self._session.execute(
            select(UserRow).where(UserRow.username == username)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._session.execute(
            select(UserRow).where(UserRow.email == email)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def add(
        self, username: str, email: str, full_name: str, role: UserRole
    ) -> User:
        row = UserRow(
            username=username,
            email=email,
            full_name=full_name,
            balance=Decimal("0.00"),
            kyc_status=KycStatus.UNVERIFIED.value,
            role=role.value,
            created_at=utcnow(),
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateAccountError(username) from exc
        return _to_entity(row)

    def adjust_balance(
        self, user_id: int, amount: Decimal, direction: BalanceDirection
    ) -> User:
        """Credit or debit a balance under a row lock.

        Raises:
            UserNotFoundError: If the user does not exist.
            InsufficientBalanceError: If a debit would go below zero.
            InvalidAmountError: If ``amount`` is not positive.
        """
        row = self._load(user_id, for_update=True)
        if row is None:
            raise UserNotFoundError(user_id)

        previous = to_currency(row.balance)
        row.balance = apply_balance_change(user_id, previous, amount, direction)
        self._session.flush()

        logger.debug(
            "Balance %s user_id=%d amount=%s: %s -> %s",
            direction.value,
            user_id,
            amount,
            previous,
            row.balance,
        )
        return _to_entity(row)

    def set_kyc_status(self, user_id: int, status: KycStatus) -> User:
        row = self._load(user_id, for_update=True)
        if row is None:
            raise UserNotFoundError(user_id)
        row.kyc_status = status.value
        self._session.flush()
        return _to_entity(row)
