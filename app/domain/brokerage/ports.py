"""
Port interfaces (ABCs) for the brokerage bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.

The ledger store is exposed as a ``UnitOfWork`` holding one repository
per entity. Everything done through a unit of work is committed or
rolled back together; leaving the ``with`` block without calling
``commit()`` discards the work.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from app.domain.brokerage.entities import (
    Asset,
    AssetType,
    BalanceDirection,
    CopyRelationship,
    CopyStatus,
    Investment,
    InvestmentPlan,
    InvestmentStatus,
    KycDocument,
    KycStatus,
    NewTrade,
    NewTransaction,
    Notification,
    NotificationType,
    Trade,
    Trader,
    Transaction,
    TransactionStatus,
    User,
    UserRole,
    VerificationStatus,
    WatchlistItem,
)


class UserRepository(ABC):
    """Port for user accounts and the balance mutation primitive."""

    @abstractmethod
    def get(self, user_id: int, for_update: bool = False) -> Optional[User]:
        """Return a user by ID, optionally locking the row."""
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def add(
        self, username: str, email: str, full_name: str, role: UserRole
    ) -> User:
        """Create a user with a zero balance and unverified KYC status."""
        raise NotImplementedError

    @abstractmethod
    def adjust_balance(
        self, user_id: int, amount: Decimal, direction: BalanceDirection
    ) -> User:
        """Credit or debit a user's balance.

        This is the only way a balance changes. The user row is locked
        for the rest of the unit of work.

        Raises:
            UserNotFoundError: If the user does not exist.
            InsufficientBalanceError: If a debit would go below zero.
            InvalidAmountError: If ``amount`` is not positive.
        """
        raise NotImplementedError

    @abstractmethod
    def set_kyc_status(self, user_id: int, status: KycStatus) -> User:
        raise NotImplementedError


class AssetRepository(ABC):
    """Port for tradable assets."""

    @abstractmethod
    def get(self, asset_id: int) -> Optional[Asset]:
        raise NotImplementedError

    @abstractmethod
    def get_by_symbol(self, symbol: str) -> Optional[Asset]:
        raise NotImplementedError

    @abstractmethod
    def list_all(
        self, asset_type: Optional[AssetType] = None, active_only: bool = True
    ) -> list[Asset]:
        """Return assets by symbol, optionally filtered by type.

        Delisted assets are only included when ``active_only`` is False.
        """
        raise NotImplementedError

    @abstractmethod
    def add(
        self, symbol: str, name: str, asset_type: AssetType, price: Decimal
    ) -> Asset:
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        asset_id: int,
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        is_active: Optional[bool] = None,
    ) -> Asset:
        """Change the given fields of an asset; None leaves a field as is.

        Raises:
            AssetNotFoundError: If the asset does not exist.
        """
        raise NotImplementedError


class TraderRepository(ABC):
    """Port for trader profiles and their follower count cache."""

    @abstractmethod
    def get(self, trader_id: int, for_update: bool = False) -> Optional[Trader]:
        raise NotImplementedError

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> Optional[Trader]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Trader]:
        raise NotImplementedError

    @abstractmethod
    def add(self, user_id: int, bio: Optional[str]) -> Trader:
        raise NotImplementedError

    @abstractmethod
    def change_followers(self, trader_id: int, delta: int) -> Trader:
        """Shift the follower count by ``delta``, never below zero."""
        raise NotImplementedError


class CopyRelationshipRepository(ABC):
    """Port for follower-to-trader links."""

    @abstractmethod
    def get(self, relationship_id: int) -> Optional[CopyRelationship]:
        raise NotImplementedError

    @abstractmethod
    def find(self, follower_id: int, trader_id: int) -> Optional[CopyRelationship]:
        raise NotImplementedError

    @abstractmethod
    def list_by_trader(
        self, trader_id: int, status: Optional[CopyStatus] = None
    ) -> list[CopyRelationship]:
        raise NotImplementedError

    @abstractmethod
    def list_by_follower(self, follower_id: int) -> list[CopyRelationship]:
        raise NotImplementedError

    @abstractmethod
    def add(
        self, follower_id: int, trader_id: int, allocation_percentage: Decimal
    ) -> CopyRelationship:
        """Create an active relationship."""
        raise NotImplementedError

    @abstractmethod
    def set_allocation(
        self, relationship_id: int, allocation_percentage: Decimal
    ) -> CopyRelationship:
        raise NotImplementedError

    @abstractmethod
    def change_status(
        self, relationship_id: int, expected: CopyStatus, new: CopyStatus
    ) -> bool:
        """Move a relationship from ``expected`` to ``new`` status.

        Compare-and-swap on status: returns False, writing nothing, if
        the relationship is gone or no longer in ``expected``. Follower
        counts must only be adjusted when this returns True.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(
        self, relationship_id: int, expected_status: Optional[CopyStatus] = None
    ) -> bool:
        """Delete a relationship.

        With ``expected_status`` the delete only happens while the
        relationship still has that status. Returns False if nothing
        was deleted.
        """
        raise NotImplementedError


class TradeRepository(ABC):
    """Port for trades."""

    @abstractmethod
    def get(self, trade_id: int, for_update: bool = False) -> Optional[Trade]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Trade]:
        """Return a user's trades, newest first."""
        raise NotImplementedError

    @abstractmethod
    def list_copies(self, original_trade_id: int) -> list[Trade]:
        raise NotImplementedError

    @abstractmethod
    def add(self, trade: NewTrade) -> Trade:
        raise NotImplementedError

    @abstractmethod
    def mark_executed(self, trade_id: int, executed_at: datetime) -> bool:
        """Flip a trade from pending to executed.

        Compare-and-swap on status: returns False if the trade was no
        longer pending, in which case nothing is written.
        """
        raise NotImplementedError


class InvestmentPlanRepository(ABC):
    @abstractmethod
    def get(self, plan_id: int) -> Optional[InvestmentPlan]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, active_only: bool = True) -> list[InvestmentPlan]:
        raise NotImplementedError

    @abstractmethod
    def add(
        self,
        name: str,
        description: str,
        min_amount: Decimal,
        max_amount: Optional[Decimal],
        roi_percentage: Decimal,
        lock_period_days: int,
        features: list[str],
    ) -> InvestmentPlan:
        raise NotImplementedError


class InvestmentRepository(ABC):
    @abstractmethod
    def get(self, investment_id: int) -> Optional[Investment]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Investment]:
        raise NotImplementedError

    @abstractmethod
    def add(
        self,
        user_id: int,
        plan_id: int,
        amount: Decimal,
        status: InvestmentStatus,
        start_date: datetime,
        end_date: datetime,
    ) -> Investment:
        raise NotImplementedError


class TransactionRepository(ABC):
    """Port for deposits, withdrawals and investment records."""

    @abstractmethod
    def get(
        self, transaction_id: int, for_update: bool = False
    ) -> Optional[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, status: Optional[TransactionStatus] = None) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def add(self, transaction: NewTransaction) -> Transaction:
        raise NotImplementedError

    @abstractmethod
    def close(
        self,
        transaction_id: int,
        status: TransactionStatus,
        closed_at: datetime,
        reviewed_by: Optional[int] = None,
        admin_notes: Optional[str] = None,
    ) -> bool:
        """Move a pending transaction to completed or failed.

        Compare-and-swap on status: returns False if the transaction
        was no longer pending. ``completed_at`` is only stamped for
        completed transactions; reviewer fields only when given.
        """
        raise NotImplementedError


class KycDocumentRepository(ABC):
    @abstractmethod
    def get(self, document_id: int) -> Optional[KycDocument]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[KycDocument]:
        raise NotImplementedError

    @abstractmethod
    def list_all(
        self, status: Optional[VerificationStatus] = None
    ) -> list[KycDocument]:
        raise NotImplementedError

    @abstractmethod
    def add(
        self,
        user_id: int,
        document_type: str,
        document_number: str,
        expiry_date: Optional[str],
    ) -> KycDocument:
        raise NotImplementedError

    @abstractmethod
    def set_verification(
        self,
        document_id: int,
        status: VerificationStatus,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Resolve a pending document. Returns False if it was not pending."""
        raise NotImplementedError


class WatchlistRepository(ABC):
    @abstractmethod
    def get(self, item_id: int) -> Optional[WatchlistItem]:
        raise NotImplementedError

    @abstractmethod
    def find(self, user_id: int, asset_id: int) -> Optional[WatchlistItem]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[WatchlistItem]:
        """Return a user's watchlist, oldest entry first."""
        raise NotImplementedError

    @abstractmethod
    def add(self, user_id: int, asset_id: int) -> WatchlistItem:
        """Raises DuplicateWatchlistItemError if the asset is already listed."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, item_id: int) -> bool:
        raise NotImplementedError


class NotificationRepository(ABC):
    """Port for the in-app notification inbox."""

    @abstractmethod
    def get(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        """Return a user's notifications, newest first."""
        raise NotImplementedError

    @abstractmethod
    def add(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
    ) -> Notification:
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, user_id: int, notification_id: Optional[int] = None) -> int:
        """Flag unread notifications of a user as read.

        Only ``notification_id`` is touched when given, otherwise the
        whole inbox. Returns the number of notifications changed.
        """
        raise NotImplementedError


class UnitOfWork(ABC):
    """Port for one atomic unit of work against the ledger store."""

    users: UserRepository
    assets: AssetRepository
    traders: TraderRepository
    copy_relationships: CopyRelationshipRepository
    trades: TradeRepository
    investment_plans: InvestmentPlanRepository
    investments: InvestmentRepository
    transactions: TransactionRepository
    kyc_documents: KycDocumentRepository
    watchlist: WatchlistRepository
    notifications: NotificationRepository

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], UnitOfWork]


class NotificationPort(ABC):
    """Port for user notifications (email delivery lives behind it)."""

    @abstractmethod
    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        raise NotImplementedError
