"""
Use case: Change allocation or status of a copy relationship.

Input: UpdateCopySettingsCommand
Output: CopyRelationship
Side effects: leaving ``active`` decrements and entering ``active``
    increments the trader's follower count, so the count keeps matching
    the number of active relationships.
Failure cases: CopyRelationshipNotFoundError, InvalidAllocationError,
    InvalidStateError (another request moved the relationship to a
    different status first).
"""

import logging

from app.application.brokerage.dtos import UpdateCopySettingsCommand
from app.domain.brokerage.copy_trading import follower_delta, validate_allocation
from app.domain.brokerage.entities import CopyRelationship
from app.domain.brokerage.errors import CopyRelationshipNotFoundError, InvalidStateError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class UpdateCopySettingsUseCase:
    """Pauses, resumes or stops copying, or changes the allocation.

    The status change is a compare-and-swap against the status read at
    the start. Only the request whose swap matched moves the follower
    count, so two concurrent pauses of one relationship count once.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: UpdateCopySettingsCommand) -> CopyRelationship:
        """Apply the requested copy settings.

        Args:
            command: Relationship, owning follower and the fields to change.

        Returns:
            The relationship after the update.

        Raises:
            CopyRelationshipNotFoundError: If the relationship is missing
                or belongs to another follower.
            InvalidAllocationError: If the allocation is outside (0, 100].
            InvalidStateError: If a concurrent request left the
                relationship in a status other than the requested one.
        """
        allocation = (
            validate_allocation(command.allocation_percentage)
            if command.allocation_percentage is not None
            else None
        )

        with self._uow_factory() as uow:
            relationship = uow.copy_relationships.get(command.relationship_id)
            if relationship is None or relationship.follower_id != command.follower_id:
                raise CopyRelationshipNotFoundError(command.relationship_id)

            previous = relationship.status
            if command.status is not None and command.status is not previous:
                if uow.copy_relationships.change_status(
                    relationship.id, previous, command.status
                ):
                    delta = follower_delta(previous, command.status)
                    if delta:
                        uow.traders.change_followers(relationship.trader_id, delta)
                else:
                    current = uow.copy_relationships.get(relationship.id)
                    if current is None:
                        raise CopyRelationshipNotFoundError(relationship.id)
                    if current.status is not command.status:
                        raise InvalidStateError(
                            "Copy relationship", relationship.id, current.status.value
                        )
                    logger.info(
                        "Copy relationship %d was already moved to %s by another request",
                        relationship.id,
                        current.status.value,
                    )

            if allocation is not None:
                updated = uow.copy_relationships.set_allocation(relationship.id, allocation)
            else:
                updated = uow.copy_relationships.get(relationship.id)
                if updated is None:
                    raise CopyRelationshipNotFoundError(relationship.id)
            uow.commit()

        logger.info(
            "Copy relationship %d updated: status %s -> %s, allocation %s%%",
            updated.id,
            previous.value,
            updated.status.value,
            updated.allocation_percentage,
        )
        return updated
