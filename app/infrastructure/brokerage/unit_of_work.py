"""
Adapter: SQLAlchemy unit of work.

One instance wraps one database transaction. Everything done through
its repositories becomes visible together on ``commit()``; leaving the
``with`` block without committing rolls it all back.

Usage:
    with SqlAlchemyUnitOfWork(session_factory) as uow:
        uow.users.adjust_balance(user_id, amount, BalanceDirection.DEBIT)
        uow.commit()
"""

from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from app.domain.brokerage.ports import UnitOfWork
from app.infrastructure.brokerage.asset_repository import AssetRepositoryAdapter
from app.infrastructure.brokerage.copy_relationship_repository import (
    CopyRelationshipRepositoryAdapter,
)
from app.infrastructure.brokerage.investment_repository import (
    InvestmentPlanRepositoryAdapter,
    InvestmentRepositoryAdapter,
)
from app.infrastructure.brokerage.kyc_document_repository import (
    KycDocumentRepositoryAdapter,
)
from app.infrastructure.brokerage.notification_repository import (
    NotificationRepositoryAdapter,
)
from app.infrastructure.brokerage.trade_repository import TradeRepositoryAdapter
from app.infrastructure.brokerage.trader_repository import TraderRepositoryAdapter
from app.infrastructure.brokerage.transaction_repository import (
    TransactionRepositoryAdapter,
)
from app.infrastructure.brokerage.user_repository import UserRepositoryAdapter
from app.infrastructure.brokerage.watchlist_repository import WatchlistRepositoryAdapter


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Unit of work backed by a single SQLAlchemy session."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Optional[Session] = None

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.users = UserRepositoryAdapter(self._session)
        self.assets = AssetRepositoryAdapter(self._session)
        self.traders = TraderRepositoryAdapter(self._session)
        self.copy_relationships = CopyRelationshipRepositoryAdapter(self._session)
        self.trades = TradeRepositoryAdapter(self._session)
        self.investment_plans = InvestmentPlanRepositoryAdapter(self._session)
        self.investments = InvestmentRepositoryAdapter(self._session)
        self.transactions = TransactionRepositoryAdapter(self._session)
        self.kyc_documents = KycDocumentRepositoryAdapter(self._session)
        self.watchlist = WatchlistRepositoryAdapter(self._session)
        self.notifications = NotificationRepositoryAdapter(self._session)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        try:
            super().__exit__(exc_type, exc_value, traceback)
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
