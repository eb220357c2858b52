"""
Use case: Invest in a plan.

Input: CreateInvestmentCommand
Output: CreateInvestmentResult
Side effects: debits the amount immediately, writes an active investment
    maturing after the plan's lock period, and a completed ``investment``
    transaction, all in one unit of work.
Failure cases: InvestmentPlanNotFoundError (missing or inactive plan),
    InvestmentLimitError, UserNotFoundError, InsufficientBalanceError
    (no investment is written).
"""

import logging
from datetime import datetime
from typing import Callable

from app.application.brokerage.dtos import CreateInvestmentCommand, CreateInvestmentResult
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.entities import (
    BalanceDirection,
    InvestmentStatus,
    NewTransaction,
    NotificationType,
    PlanStatus,
    TransactionStatus,
    TransactionType,
)
from app.domain.brokerage.errors import (
    InsufficientBalanceError,
    InvestmentPlanNotFoundError,
    UserNotFoundError,
)
from app.domain.brokerage.investment_terms import check_plan_limits, maturity_date
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)

INVESTMENT_METHOD = "balance"


class CreateInvestmentUseCase:
    """Moves money from a user's balance into an investment plan."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock

    def execute(self, command: CreateInvestmentCommand) -> CreateInvestmentResult:
        """Run the investment creation use case.

        Raises:
            InvestmentPlanNotFoundError: If the plan is missing or inactive.
            InvestmentLimitError: If the amount is outside the plan limits.
            UserNotFoundError: If the user does not exist.
            InsufficientBalanceError: If the balance does not cover the amount.
        """
        with self._uow_factory() as uow:
            plan = uow.investment_plans.get(command.plan_id)
            if plan is None or plan.status is not PlanStatus.ACTIVE:
                raise InvestmentPlanNotFoundError(command.plan_id)
            amount = check_plan_limits(plan, command.amount)

            if uow.users.get(command.user_id) is None:
                raise UserNotFoundError(command.user_id)

            try:
                user = uow.users.adjust_balance(
                    command.user_id, amount, BalanceDirection.DEBIT
                )
            except InsufficientBalanceError as exc:
                logger.warning(
                    "Investment in plan %d rejected: %s", plan.id, exc.message
                )
                raise

            start = self._clock()
            investment = uow.investments.add(
                user_id=user.id,
                plan_id=plan.id,
                amount=amount,
                status=InvestmentStatus.ACTIVE,
                start_date=start,
                end_date=maturity_date(start, plan),
            )
            transaction = uow.transactions.add(
                NewTransaction(
                    user_id=user.id,
                    transaction_type=TransactionType.INVESTMENT,
                    amount=amount,
                    method=INVESTMENT_METHOD,
                    status=TransactionStatus.COMPLETED,
                    description=f"Investment in {plan.name}",
                    completed_at=start,
                )
            )
            uow.commit()

        logger.info(
            "User %d invested %s in plan %d (%s), balance now %s",
            user.id,
            amount,
            plan.id,
            plan.name,
            user.balance,
        )
        send_notification(
            self._notifier,
            user.id,
            "Investment created",
            f"You invested {amount} in {plan.name}; it matures on "
            f"{investment.end_date:%Y-%m-%d}.",
            NotificationType.INVESTMENT,
        )
        return CreateInvestmentResult(
            investment=investment, transaction=transaction, balance=user.balance
        )
