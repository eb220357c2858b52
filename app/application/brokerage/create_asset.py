"""
Use case: List a new tradable asset.

Input: CreateAssetCommand
Output: Asset
Failure cases: InvalidAmountError (non-positive price), DuplicateAssetError.
"""

import logging

from app.application.brokerage.dtos import CreateAssetCommand
from app.domain.brokerage.entities import Asset
from app.domain.brokerage.errors import DuplicateAssetError, InvalidAmountError
from app.domain.brokerage.ledger import ZERO, to_price
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class CreateAssetUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: CreateAssetCommand) -> Asset:
        symbol = command.symbol.strip().upper()
        price = to_price(command.price)
        if price <= ZERO:
            raise InvalidAmountError(command.price)

        with self._uow_factory() as uow:
            if uow.assets.get_by_symbol(symbol) is not None:
                raise DuplicateAssetError(symbol)
            asset = uow.assets.add(symbol, command.name, command.asset_type, price)
            uow.commit()

        logger.info("Asset %d listed: %s (%s) @ %s", asset.id, symbol, asset.asset_type.value, price)
        return asset
