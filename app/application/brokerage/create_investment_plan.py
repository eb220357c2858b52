"""
Use case: Add an investment plan to the catalogue (admin).

Input: CreateInvestmentPlanCommand
Output: InvestmentPlan
Failure cases: InvalidAmountError, InvestmentLimitError (max below min).
"""

import logging

from app.application.brokerage.dtos import CreateInvestmentPlanCommand
from app.domain.brokerage.entities import InvestmentPlan
from app.domain.brokerage.errors import InvalidAmountError, InvestmentLimitError
from app.domain.brokerage.investment_terms import parse_lock_period
from app.domain.brokerage.ledger import ZERO, to_currency
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class CreateInvestmentPlanUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: CreateInvestmentPlanCommand) -> InvestmentPlan:
        min_amount = to_currency(command.min_amount)
        if min_amount <= ZERO:
            raise InvalidAmountError(command.min_amount)
        # Zero and None both mean "no upper limit".
        max_amount = to_currency(command.max_amount) if command.max_amount else None
        if max_amount is not None and max_amount < min_amount:
            raise InvestmentLimitError(max_amount, min_amount, max_amount)
        roi = to_currency(command.roi_percentage)
        if roi < ZERO:
            raise InvalidAmountError(command.roi_percentage)

        lock_days = parse_lock_period(command.lock_period)

        with self._uow_factory() as uow:
            plan = uow.investment_plans.add(
                name=command.name,
                description=command.description,
                min_amount=min_amount,
                max_amount=max_amount,
                roi_percentage=roi,
                lock_period_days=lock_days,
                features=list(command.features),
            )
            uow.commit()

        logger.info(
            "Investment plan %d created: %s, %s%% over %d days",
            plan.id,
            plan.name,
            plan.roi_percentage,
            plan.lock_period_days,
        )
        return plan
