"""
Use case: Publish a user as a copyable trader.

Input: RegisterTraderCommand
Output: Trader (zero followers)
Failure cases: UserNotFoundError, DuplicateTraderError.
"""

import logging

from app.application.brokerage.dtos import RegisterTraderCommand
from app.domain.brokerage.entities import Trader
from app.domain.brokerage.errors import DuplicateTraderError, UserNotFoundError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class RegisterTraderUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: RegisterTraderCommand) -> Trader:
        with self._uow_factory() as uow:
            if uow.users.get(command.user_id) is None:
                raise UserNotFoundError(command.user_id)
            if uow.traders.get_by_user_id(command.user_id) is not None:
                raise DuplicateTraderError(command.user_id)

            trader = uow.traders.add(command.user_id, command.bio)
            uow.commit()

        logger.info("Trader profile %d registered for user_id=%d", trader.id, trader.user_id)
        return trader
