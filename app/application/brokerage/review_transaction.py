"""
Use case: Admin review of a pending deposit or withdrawal.

Input: ReviewTransactionCommand (approve or reject)
Output: Transaction
Side effects: approve completes the transaction (balance moves);
    reject marks it failed. Reviewer, notes and review time are recorded.
Failure cases: TransactionNotFoundError, InvalidStateError (not pending),
    InsufficientBalanceError (approving an uncovered withdrawal).
"""

import logging
from datetime import datetime
from typing import Callable

from app.application.brokerage.complete_transaction import CompleteTransactionUseCase
from app.application.brokerage.dtos import ReviewAction, ReviewTransactionCommand
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.entities import NotificationType, Transaction, TransactionStatus
from app.domain.brokerage.errors import InvalidStateError, TransactionNotFoundError
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)


class ReviewTransactionUseCase:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock
        self._complete = CompleteTransactionUseCase(uow_factory, notifier, clock)

    def execute(self, command: ReviewTransactionCommand) -> Transaction:
        """Approve or reject a pending transaction.

        Raises:
            TransactionNotFoundError: If the transaction does not exist.
            InvalidStateError: If it has already been reviewed or completed.
        """
        if command.action is ReviewAction.APPROVE:
            result = self._complete.execute(
                command.transaction_id,
                reviewed_by=command.admin_id,
                admin_notes=command.notes,
            )
            if not result.completed:
                raise InvalidStateError(
                    "Transaction",
                    command.transaction_id,
                    result.transaction.status.value,
                )
            return result.transaction

        with self._uow_factory() as uow:
            transaction = uow.transactions.get(command.transaction_id, for_update=True)
            if transaction is None:
                raise TransactionNotFoundError(command.transaction_id)

            rejected = uow.transactions.close(
                transaction.id,
                TransactionStatus.FAILED,
                self._clock(),
                reviewed_by=command.admin_id,
                admin_notes=command.notes,
            )
            if not rejected:
                raise InvalidStateError(
                    "Transaction", transaction.id, transaction.status.value
                )
            updated = uow.transactions.get(transaction.id)
            uow.commit()

        logger.info(
            "Transaction %d rejected by admin user_id=%d",
            transaction.id,
            command.admin_id,
        )
        send_notification(
            self._notifier,
            transaction.user_id,
            f"{transaction.transaction_type.value.capitalize()} rejected",
            command.notes
            or f"Your {transaction.transaction_type.value} of {transaction.amount} was rejected.",
            NotificationType.TRANSACTION,
        )
        return updated
