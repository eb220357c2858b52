"""
Use case: Request a deposit or withdrawal.

Input: RequestTransactionCommand
Output: Transaction (always pending)
Side effects: creates the pending transaction. No balance change until
    it is completed.
Failure cases: UserNotFoundError, InvalidAmountError,
    UnsupportedOperationError, InsufficientBalanceError (withdrawals).
"""

import logging

from app.application.brokerage.dtos import RequestTransactionCommand
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.entities import (
    NewTransaction,
    NotificationType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from app.domain.brokerage.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    UnsupportedOperationError,
    UserNotFoundError,
)
from app.domain.brokerage.ledger import ZERO, to_currency
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory

logger = logging.getLogger(__name__)

_REQUESTABLE_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class RequestTransactionUseCase:
    """Records a user's deposit or withdrawal request for later review."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier

    def execute(self, command: RequestTransactionCommand) -> Transaction:
        if command.transaction_type not in _REQUESTABLE_TYPES:
            raise UnsupportedOperationError(
                "Transaction request", command.transaction_type.value
            )
        amount = to_currency(command.amount)
        if amount <= ZERO:
            raise InvalidAmountError(command.amount)

        with self._uow_factory() as uow:
            user = uow.users.get(command.user_id)
            if user is None:
                raise UserNotFoundError(command.user_id)

            # Early rejection only; completion re-checks under a row lock.
            if (
                command.transaction_type is TransactionType.WITHDRAWAL
                and amount > user.balance
            ):
                logger.warning(
                    "Withdrawal request from user_id=%d rejected: %s > %s",
                    user.id,
                    amount,
                    user.balance,
                )
                raise InsufficientBalanceError(user.id, amount, user.balance)

            transaction = uow.transactions.add(
                NewTransaction(
                    user_id=user.id,
                    transaction_type=command.transaction_type,
                    amount=amount,
                    method=command.method,
                    status=TransactionStatus.PENDING,
                    transaction_ref=command.transaction_ref,
                    payment_notes=command.payment_notes,
                    withdrawal_address=command.withdrawal_address,
                )
            )
            uow.commit()

        logger.info(
            "%s request %d created for user_id=%d: %s via %s",
            transaction.transaction_type.value.capitalize(),
            transaction.id,
            transaction.user_id,
            transaction.amount,
            transaction.method,
        )
        send_notification(
            self._notifier,
            transaction.user_id,
            f"{transaction.transaction_type.value.capitalize()} request received",
            f"Your {transaction.transaction_type.value} of {transaction.amount} "
            "is pending review.",
            NotificationType.TRANSACTION,
        )
        return transaction
