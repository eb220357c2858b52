"""
Use case: Remove an entry from a user's watchlist.

Input: item_id, user_id
Output: None
Failure cases: WatchlistItemNotFoundError (missing, or on another
    user's watchlist).
"""

import logging

from app.domain.brokerage.errors import WatchlistItemNotFoundError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class RemoveFromWatchlistUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, item_id: int, user_id: int) -> None:
        with self._uow_factory() as uow:
            item = uow.watchlist.get(item_id)
            if item is None or item.user_id != user_id:
                raise WatchlistItemNotFoundError(item_id)
            if not uow.watchlist.delete(item_id):
                raise WatchlistItemNotFoundError(item_id)
            uow.commit()

        logger.info("User %d removed watchlist item %d", user_id, item_id)
