"""
Use case: Edit or delist a tradable asset.

Input: UpdateAssetCommand
Output: Asset
Side effects: the asset's name, price or listing flag changes. Pending
    trades keep the price they were placed at. A delisted asset is
    hidden from the asset list and rejects new orders and watchlist
    entries; its trades and watchlist entries stay.
Failure cases: AssetNotFoundError, InvalidAmountError (non-positive price).
"""

import logging

from app.application.brokerage.dtos import UpdateAssetCommand
from app.domain.brokerage.entities import Asset
from app.domain.brokerage.errors import InvalidAmountError
from app.domain.brokerage.ledger import ZERO, to_price
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class UpdateAssetUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: UpdateAssetCommand) -> Asset:
        price = to_price(command.price) if command.price is not None else None
        if price is not None and price <= ZERO:
            raise InvalidAmountError(command.price)
        name = command.name.strip() if command.name is not None else None

        with self._uow_factory() as uow:
            asset = uow.assets.update(
                command.asset_id,
                name=name or None,
                price=price,
                is_active=command.is_active,
            )
            uow.commit()

        if command.is_active is False:
            logger.info("Asset %d (%s) delisted", asset.id, asset.symbol)
        else:
            logger.info(
                "Asset %d (%s) updated: price %s, active %s",
                asset.id,
                asset.symbol,
                asset.price,
                asset.is_active,
            )
        return asset
