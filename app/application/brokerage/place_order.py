"""
Use case: Place a trade order.

Input: PlaceOrderCommand
Output: PlaceOrderResult
Side effects: creates a pending trade; executes it immediately when an
    executor is configured (auto-execution).
Failure cases: UserNotFoundError, AssetNotFoundError, InvalidAmountError.
    Insufficient balance during auto-execution is not an error: the
    pending trade is returned with a rejection reason.
"""

import logging

from app.application.brokerage.dtos import PlaceOrderCommand, PlaceOrderResult
from app.application.brokerage.execute_trade import ExecuteTradeUseCase
from app.domain.brokerage.entities import NewTrade
from app.domain.brokerage.errors import (
    AssetNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    UserNotFoundError,
)
from app.domain.brokerage.ledger import ZERO, to_price, to_quantity
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class PlaceOrderUseCase:
    """Records an order as a pending trade, optionally executing it."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        executor: ExecuteTradeUseCase | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._executor = executor

    def execute(self, command: PlaceOrderCommand) -> PlaceOrderResult:
        amount = to_quantity(command.amount)
        if amount <= ZERO:
            raise InvalidAmountError(command.amount)

        with self._uow_factory() as uow:
            if uow.users.get(command.user_id) is None:
                raise UserNotFoundError(command.user_id)
            asset = uow.assets.get(command.asset_id)
            if asset is None or not asset.is_active:
                raise AssetNotFoundError(command.asset_id)

            price = to_price(command.price) if command.price is not None else asset.price
            if price <= ZERO:
                raise InvalidAmountError(price)

            trade = uow.trades.add(
                NewTrade(
                    user_id=command.user_id,
                    asset_id=asset.id,
                    direction=command.direction,
                    amount=amount,
                    price=price,
                )
            )
            uow.commit()

        logger.info(
            "Order %d placed: user_id=%d %s %s %s @ %s",
            trade.id,
            trade.user_id,
            trade.direction.value,
            trade.amount,
            asset.symbol,
            trade.price,
        )

        if self._executor is None:
            return PlaceOrderResult(trade=trade, executed=False)

        try:
            result = self._executor.execute(trade.id)
        except InsufficientBalanceError as exc:
            return PlaceOrderResult(
                trade=trade, executed=False, rejection_reason=exc.message
            )

        return PlaceOrderResult(
            trade=result.trade,
            executed=result.executed,
            copy_trade_ids=result.copy_trade_ids,
            failed_follower_ids=result.failed_follower_ids,
        )
