"""
Use case: Start copying a trader.

Input: StartCopyingCommand
Output: CopyRelationship (active)
Side effects: creates the relationship and increments the trader's
    follower count in the same unit of work.
Failure cases: UserNotFoundError, TraderNotFoundError, SelfCopyError,
    AlreadyCopyingError, InvalidAllocationError.
"""

import logging

from app.application.brokerage.dtos import StartCopyingCommand
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.copy_trading import follower_delta, validate_allocation
from app.domain.brokerage.entities import (
    CopyRelationship,
    CopyStatus,
    NotificationType,
)
from app.domain.brokerage.errors import (
    AlreadyCopyingError,
    SelfCopyError,
    TraderNotFoundError,
    UserNotFoundError,
)
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory

logger = logging.getLogger(__name__)


class StartCopyingUseCase:
    """Links a follower to a trader and counts the new follower.

    The trader row is locked for the whole unit of work, so concurrent
    starts for one trader update the follower count one after another.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier

    def execute(self, command: StartCopyingCommand) -> CopyRelationship:
        """Start copying.

        A follower whose earlier relationship with the trader was
        stopped may start again; paused or active ones conflict.

        Raises:
            UserNotFoundError: If the follower does not exist.
            TraderNotFoundError: If the trader does not exist.
            SelfCopyError: If the trader would copy themselves.
            AlreadyCopyingError: If an active or paused relationship exists.
            InvalidAllocationError: If the allocation is outside (0, 100].
        """
        allocation = validate_allocation(command.allocation_percentage)

        with self._uow_factory() as uow:
            if uow.users.get(command.follower_id) is None:
                raise UserNotFoundError(command.follower_id)
            # Lock the trader row: serializes follower count updates.
            trader = uow.traders.get(command.trader_id, for_update=True)
            if trader is None:
                raise TraderNotFoundError(command.trader_id)
            if trader.user_id == command.follower_id:
                raise SelfCopyError(command.follower_id)

            existing = uow.copy_relationships.find(command.follower_id, trader.id)
            if existing is not None and existing.status is not CopyStatus.STOPPED:
                raise AlreadyCopyingError(command.follower_id, trader.id)

            relationship = uow.copy_relationships.add(
                command.follower_id, trader.id, allocation
            )
            uow.traders.change_followers(
                trader.id, follower_delta(None, relationship.status)
            )
            uow.commit()

        logger.info(
            "User %d started copying trader %d at %s%%",
            command.follower_id,
            trader.id,
            allocation,
        )
        send_notification(
            self._notifier,
            trader.user_id,
            "New follower",
            f"User {command.follower_id} started copying your trades.",
            NotificationType.COPY_TRADING,
        )
        return relationship
