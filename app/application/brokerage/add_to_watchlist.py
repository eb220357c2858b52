"""
Use case: Add an asset to a user's watchlist.

Input: AddToWatchlistCommand
Output: WatchlistEntry (item plus asset)
Failure cases: UserNotFoundError, AssetNotFoundError (missing or
    delisted), DuplicateWatchlistItemError.
"""

import logging

from app.application.brokerage.dtos import AddToWatchlistCommand, WatchlistEntry
from app.domain.brokerage.errors import (
    AssetNotFoundError,
    DuplicateWatchlistItemError,
    UserNotFoundError,
)
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class AddToWatchlistUseCase:
    """Records that a user follows an asset's price."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: AddToWatchlistCommand) -> WatchlistEntry:
        with self._uow_factory() as uow:
            if uow.users.get(command.user_id) is None:
                raise UserNotFoundError(command.user_id)
            asset = uow.assets.get(command.asset_id)
            if asset is None or not asset.is_active:
                raise AssetNotFoundError(command.asset_id)
            if uow.watchlist.find(command.user_id, asset.id) is not None:
                raise DuplicateWatchlistItemError(command.user_id, asset.id)

            item = uow.watchlist.add(command.user_id, asset.id)
            uow.commit()

        logger.info("User %d is watching %s", command.user_id, asset.symbol)
        return WatchlistEntry(item=item, asset=asset)
