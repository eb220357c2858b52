"""
Use case: Complete a pending deposit or withdrawal.

Input: transaction_id (plus reviewer details for admin approvals)
Output: CompleteTransactionResult
Side effects: transaction pending -> completed with completed_at;
    deposit credits, withdrawal debits the user's balance.
Failure cases: TransactionNotFoundError, UserNotFoundError,
    InsufficientBalanceError (transaction stays pending).
"""

import logging
from datetime import datetime
from typing import Callable

from app.application.brokerage.dtos import CompleteTransactionResult
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.entities import (
    NotificationType,
    TransactionStatus,
    TransactionType,
)
from app.domain.brokerage.errors import (
    InsufficientBalanceError,
    TransactionNotFoundError,
    UnsupportedOperationError,
    UserNotFoundError,
)
from app.domain.brokerage.ledger import transaction_settlement
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)


class CompleteTransactionUseCase:
    """Moves a pending transaction to completed and settles its balance effect.

    Calling it for a transaction that is no longer pending returns the
    record unchanged with ``completed=False``.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock

    def execute(
        self,
        transaction_id: int,
        reviewed_by: int | None = None,
        admin_notes: str | None = None,
    ) -> CompleteTransactionResult:
        """Run the transaction completion use case.

        Args:
            transaction_id: The transaction to complete.
            reviewed_by: Admin user approving it, if any.
            admin_notes: Reviewer notes stored on the record.

        Raises:
            TransactionNotFoundError: If the transaction does not exist.
            UserNotFoundError: If the owning user is missing.
            InsufficientBalanceError: If a withdrawal exceeds the balance.
        """
        with self._uow_factory() as uow:
            transaction = uow.transactions.get(transaction_id, for_update=True)
            if transaction is None:
                raise TransactionNotFoundError(transaction_id)

            if not transaction.is_pending:
                logger.info(
                    "Transaction %d is already %s; nothing to complete",
                    transaction_id,
                    transaction.status.value,
                )
                return CompleteTransactionResult(transaction=transaction, completed=False)

            if transaction.transaction_type is TransactionType.INVESTMENT:
                raise UnsupportedOperationError(
                    "Transaction completion", transaction.transaction_type.value
                )
            if uow.users.get(transaction.user_id) is None:
                logger.error(
                    "Transaction %d references missing user_id=%d",
                    transaction_id,
                    transaction.user_id,
                )
                raise UserNotFoundError(transaction.user_id)

            closed = uow.transactions.close(
                transaction_id,
                TransactionStatus.COMPLETED,
                self._clock(),
                reviewed_by=reviewed_by,
                admin_notes=admin_notes,
            )
            if not closed:
                current = uow.transactions.get(transaction_id)
                logger.info("Transaction %d was closed concurrently", transaction_id)
                return CompleteTransactionResult(
                    transaction=current or transaction, completed=False
                )

            direction, amount = transaction_settlement(transaction)
            try:
                uow.users.adjust_balance(transaction.user_id, amount, direction)
            except InsufficientBalanceError as exc:
                logger.warning(
                    "Transaction %d left pending: %s", transaction_id, exc.message
                )
                raise

            completed = uow.transactions.get(transaction_id)
            uow.commit()

        logger.info(
            "Completed %s %d: user_id=%d %s %s",
            transaction.transaction_type.value,
            transaction_id,
            transaction.user_id,
            direction.value,
            amount,
        )
        send_notification(
            self._notifier,
            transaction.user_id,
            f"{transaction.transaction_type.value.capitalize()} completed",
            f"Your {transaction.transaction_type.value} of {amount} has been completed.",
            NotificationType.TRANSACTION,
        )
        return CompleteTransactionResult(transaction=completed, completed=True)
