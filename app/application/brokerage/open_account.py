"""
Use case: Open a user account.

Input: OpenAccountCommand
Output: User (balance 0.00, KYC unverified)
Failure cases: DuplicateAccountError (username or email taken).
"""

import logging

from app.application.brokerage.dtos import OpenAccountCommand
from app.domain.brokerage.entities import User
from app.domain.brokerage.errors import DuplicateAccountError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class OpenAccountUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: OpenAccountCommand) -> User:
        username = command.username.strip()
        email = command.email.strip().lower()

        with self._uow_factory() as uow:
            if uow.users.get_by_username(username) is not None:
                raise DuplicateAccountError(username)
            if uow.users.get_by_email(email) is not None:
                raise DuplicateAccountError(email)

            user = uow.users.add(
                username=username,
                email=email,
                full_name=command.full_name.strip(),
                role=command.role,
            )
            uow.commit()

        logger.info("Account %d opened for %s (%s)", user.id, user.username, user.role.value)
        return user
