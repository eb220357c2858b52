"""
Read-only query use cases for the brokerage bounded context.

Side effects: None.
Failure cases: the matching *NotFoundError when a parent entity
(user, trade) does not exist.
"""

from app.application.brokerage.dtos import WatchlistEntry
from app.domain.brokerage.entities import (
    Asset,
    AssetType,
    CopyRelationship,
    Investment,
    InvestmentPlan,
    KycDocument,
    Notification,
    Trade,
    Trader,
    Transaction,
    TransactionStatus,
    User,
    VerificationStatus,
)
from app.domain.brokerage.errors import TradeNotFoundError, UserNotFoundError
from app.domain.brokerage.ports import UnitOfWork, UnitOfWorkFactory


def _require_user(uow: UnitOfWork, user_id: int) -> User:
    user = uow.users.get(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


class _QueryUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory


class GetUserUseCase(_QueryUseCase):
    def execute(self, user_id: int) -> User:
        with self._uow_factory() as uow:
            return _require_user(uow, user_id)


class GetTradeUseCase(_QueryUseCase):
    def execute(self, trade_id: int) -> Trade:
        with self._uow_factory() as uow:
            trade = uow.trades.get(trade_id)
            if trade is None:
                raise TradeNotFoundError(trade_id)
            return trade


class ListUserTradesUseCase(_QueryUseCase):
    """A user's trades, newest first."""

    def execute(self, user_id: int) -> list[Trade]:
        with self._uow_factory() as uow:
            _require_user(uow, user_id)
            return uow.trades.list_by_user(user_id)


class ListTradeCopiesUseCase(_QueryUseCase):
    """Follower copies created from an original trade."""

    def execute(self, trade_id: int) -> list[Trade]:
        with self._uow_factory() as uow:
            if uow.trades.get(trade_id) is None:
                raise TradeNotFoundError(trade_id)
            return uow.trades.list_copies(trade_id)


class ListTradersUseCase(_QueryUseCase):
    """Trader marketplace, most followed first."""

    def execute(self) -> list[Trader]:
        with self._uow_factory() as uow:
            return uow.traders.list_all()


class ListCopyRelationshipsUseCase(_QueryUseCase):
    def execute(self, follower_id: int) -> list[CopyRelationship]:
        with self._uow_factory() as uow:
            _require_user(uow, follower_id)
            return uow.copy_relationships.list_by_follower(follower_id)


class ListUserTransactionsUseCase(_QueryUseCase):
    def execute(self, user_id: int) -> list[Transaction]:
        with self._uow_factory() as uow:
            _require_user(uow, user_id)
            return uow.transactions.list_by_user(user_id)


class ListTransactionsUseCase(_QueryUseCase):
    """Admin view of all transactions, optionally by status."""

    def execute(self, status: TransactionStatus | None = None) -> list[Transaction]:
        with self._uow_factory() as uow:
            return uow.transactions.list_all(status=status)


class ListInvestmentPlansUseCase(_QueryUseCase):
    def execute(self, active_only: bool = True) -> list[InvestmentPlan]:
        with self._uow_factory() as uow:
            return uow.investment_plans.list_all(active_only=active_only)


class ListUserInvestmentsUseCase(_QueryUseCase):
    def execute(self, user_id: int) -> list[Investment]:
        with self._uow_factory() as uow:
            _require_user(uow, user_id)
            return uow.investments.list_by_user(user_id)


class ListAssetsUseCase(_QueryUseCase):
    """Listed assets; the admin view also includes delisted ones."""

    def execute(
        self, asset_type: AssetType | None = None, active_only: bool = True
    ) -> list[Asset]:
        with self._uow_factory() as uow:
            return uow.assets.list_all(asset_type=asset_type, active_only=active_only)


class ListKycDocumentsUseCase(_QueryUseCase):
    """Admin KYC review queue."""

    def execute(
        self, status: VerificationStatus | None = VerificationStatus.PENDING
    ) -> list[KycDocument]:
        with self._uow_factory() as uow:
            return uow.kyc_documents.list_all(status=status)


class ListWatchlistUseCase(_QueryUseCase):
    """A user's watchlist with the current state of each asset."""

    def execute(self, user_id: int) -> list[WatchlistEntry]:
        with self._uow_factory() as uow:
            _require_user(uow, user_id)
            entries = []
            for item in uow.watchlist.list_by_user(user_id):
                asset = uow.assets.get(item.asset_id)
                if asset is not None:
                    entries.append(WatchlistEntry(item=item, asset=asset))
            return entries


class ListNotificationsUseCase(_QueryUseCase):
    """A user's in-app inbox, newest first."""

    def execute(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        with self._uow_factory() as uow:
            _require_user(uow, user_id)
            return uow.notifications.list_by_user(user_id, unread_only=unread_only)
