"""
Use case: Execute a pending trade and fan it out to copy followers.

Input: trade_id
Output: ExecuteTradeResult
Side effects:
    - trade status pending -> executed, executed_at stamped
    - owner's balance debited (buy) or credited (sell) by amount * price
    - for original trades of a trader: one pending copy per active follower
Failure cases: TradeNotFoundError, AssetNotFoundError, UserNotFoundError,
    InsufficientBalanceError (nothing is changed).
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from app.application.brokerage.dtos import ExecuteTradeResult
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.copy_trading import build_copy_order, can_fan_out
from app.domain.brokerage.entities import (
    CopyStatus,
    NotificationType,
    Trade,
    TradeStatus,
)
from app.domain.brokerage.errors import (
    AssetNotFoundError,
    InsufficientBalanceError,
    TradeNotFoundError,
    UserNotFoundError,
)
from app.domain.brokerage.ledger import ZERO, trade_settlement
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)


class ExecuteTradeUseCase:
    """Settles a pending trade against its owner's balance.

    The status flip and the balance change commit together. Only the
    caller that actually flipped the status creates follower copies, so
    repeated or concurrent calls for one trade settle it exactly once.
    Copies are left pending; executing them later never fans out again.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock

    def execute(self, trade_id: int) -> ExecuteTradeResult:
        """Run the trade execution use case.

        Args:
            trade_id: The trade to execute.

        Returns:
            The trade after the attempt. ``executed`` is False when the
            trade was already executed or canceled.

        Raises:
            TradeNotFoundError: If the trade does not exist.
            AssetNotFoundError: If the traded asset is missing.
            UserNotFoundError: If the owning user is missing.
            InsufficientBalanceError: If a buy exceeds the balance.
        """
        with self._uow_factory() as uow:
            trade = uow.trades.get(trade_id, for_update=True)
            if trade is None:
                raise TradeNotFoundError(trade_id)

            if not trade.is_pending:
                logger.info(
                    "Trade %d is already %s; nothing to execute",
                    trade_id,
                    trade.status.value,
                )
                return ExecuteTradeResult(trade=trade, executed=False)

            if uow.assets.get(trade.asset_id) is None:
                logger.error(
                    "Trade %d references missing asset_id=%d", trade_id, trade.asset_id
                )
                raise AssetNotFoundError(trade.asset_id)
            if uow.users.get(trade.user_id) is None:
                logger.error(
                    "Trade %d references missing user_id=%d", trade_id, trade.user_id
                )
                raise UserNotFoundError(trade.user_id)

            executed_at = self._clock()
            if not uow.trades.mark_executed(trade_id, executed_at):
                current = uow.trades.get(trade_id)
                logger.info("Trade %d was claimed by another executor", trade_id)
                return ExecuteTradeResult(trade=current or trade, executed=False)

            direction, cost = trade_settlement(trade)
            if cost > ZERO:
                try:
                    uow.users.adjust_balance(trade.user_id, cost, direction)
                except InsufficientBalanceError as exc:
                    logger.warning("Trade %d rejected: %s", trade_id, exc.message)
                    raise

            uow.commit()

        executed = replace(trade, status=TradeStatus.EXECUTED, executed_at=executed_at)
        logger.info(
            "Executed trade %d: %s %s of asset_id=%d for user_id=%d (%s %s)",
            trade_id,
            trade.direction.value,
            trade.amount,
            trade.asset_id,
            trade.user_id,
            direction.value,
            cost,
        )
        send_notification(
            self._notifier,
            trade.user_id,
            "Trade executed",
            f"Your {trade.direction.value} order #{trade_id} was executed at {trade.price}.",
            NotificationType.TRADE,
        )

        copy_ids: tuple[int, ...] = ()
        failed: tuple[int, ...] = ()
        if can_fan_out(executed):
            copy_ids, failed = self._fan_out(executed)

        return ExecuteTradeResult(
            trade=executed,
            executed=True,
            copy_trade_ids=copy_ids,
            failed_follower_ids=failed,
        )

    def _fan_out(self, trade: Trade) -> tuple[tuple[int, ...], tuple[int, ...]]:
        """Create one pending copy per active follower of the trade's owner.

        Each copy commits on its own; a failing follower is logged and
        skipped without affecting the others or the original trade.
        """
        with self._uow_factory() as uow:
            trader = uow.traders.get_by_user_id(trade.user_id)
            if trader is None:
                return (), ()
            relationships = uow.copy_relationships.list_by_trader(
                trader.id, status=CopyStatus.ACTIVE
            )

        copy_ids: list[int] = []
        failed: list[int] = []
        for relationship in relationships:
            order = build_copy_order(trade, relationship)
            if order.amount <= ZERO:
                logger.warning(
                    "Skipping follower user_id=%d for trade %d: copied quantity rounds to zero",
                    relationship.follower_id,
                    trade.id,
                )
                failed.append(relationship.follower_id)
                continue
            try:
                with self._uow_factory() as uow:
                    copy = uow.trades.add(order)
                    uow.commit()
            except Exception:
                logger.warning(
                    "Failed to copy trade %d for follower user_id=%d",
                    trade.id,
                    relationship.follower_id,
                    exc_info=True,
                )
                failed.append(relationship.follower_id)
                continue

            copy_ids.append(copy.id)
            send_notification(
                self._notifier,
                relationship.follower_id,
                "Trade copied",
                f"Order #{copy.id} mirrors trade #{trade.id} and awaits execution.",
                NotificationType.COPY_TRADING,
            )

        if relationships:
            logger.info(
                "Trade %d fanned out to %d follower(s), %d failed",
                trade.id,
                len(copy_ids),
                len(failed),
            )
        return tuple(copy_ids), tuple(failed)
