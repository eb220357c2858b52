"""
Use case: Stop copying a trader.

Input: relationship_id, follower_id
Output: True
Side effects: deletes the relationship; if it was active, the trader's
    follower count drops by one (never below zero).
Failure cases: CopyRelationshipNotFoundError (missing, already stopped
    by another request, or owned by another follower), InvalidStateError
    (the relationship kept changing while being deleted).
"""

import logging

from app.domain.brokerage.copy_trading import follower_delta
from app.domain.brokerage.errors import CopyRelationshipNotFoundError, InvalidStateError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class StopCopyingUseCase:
    """Removes a copy relationship and releases its follower slot."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, relationship_id: int, follower_id: int) -> bool:
        """Delete the relationship if it still has the status read first.

        The delete is conditional on that status, and the follower count
        is only adjusted for the status actually deleted. A concurrent
        status change gets one retry against the stored status.

        Returns:
            True once the relationship is gone.
        """
        with self._uow_factory() as uow:
            relationship = uow.copy_relationships.get(relationship_id)
            if relationship is None or relationship.follower_id != follower_id:
                raise CopyRelationshipNotFoundError(relationship_id)

            deleted_status = relationship.status
            if not uow.copy_relationships.delete(
                relationship_id, expected_status=deleted_status
            ):
                current = uow.copy_relationships.get(relationship_id)
                if current is None:
                    raise CopyRelationshipNotFoundError(relationship_id)
                deleted_status = current.status
                if not uow.copy_relationships.delete(
                    relationship_id, expected_status=deleted_status
                ):
                    raise InvalidStateError(
                        "Copy relationship", relationship_id, "being modified"
                    )

            delta = follower_delta(deleted_status, None)
            if delta:
                uow.traders.change_followers(relationship.trader_id, delta)
            uow.commit()

        logger.info(
            "User %d stopped copying trader %d (relationship %d)",
            follower_id,
            relationship.trader_id,
            relationship_id,
        )
        return True
