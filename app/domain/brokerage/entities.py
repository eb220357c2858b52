"""
Domain entities for the brokerage bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
Records are immutable snapshots; state changes go through the
ledger store ports so that every balance mutation has one entry point.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class KycStatus(Enum):
    """Verification state of a user account."""

    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"


class AssetType(Enum):
    STOCK = "stock"
    CRYPTO = "crypto"
    FOREX = "forex"


class TradeDirection(Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStatus(Enum):
    """Trade lifecycle: pending -> executed | canceled."""

    PENDING = "pending"
    EXECUTED = "executed"
    CANCELED = "canceled"


class CopyStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


class TransactionType(Enum):
    """Kind of money movement.

    Deposits credit and withdrawals debit on completion.
    Investment records are written already completed, since the
    debit happens when the investment is created.
    """

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"


class TransactionStatus(Enum):
    """Transaction lifecycle: pending -> completed | failed."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PlanStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class InvestmentStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class VerificationStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class BalanceDirection(Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class NotificationType(Enum):
    """What an in-app notification is about."""

    GENERAL = "general"
    TRADE = "trade"
    COPY_TRADING = "copy_trading"
    TRANSACTION = "transaction"
    INVESTMENT = "investment"
    KYC = "kyc"


@dataclass(frozen=True)
class User:
    """A brokerage account holder. Balance is in account currency, 2 dp."""

    id: int
    username: str
    email: str
    full_name: str
    balance: Decimal
    kyc_status: KycStatus
    role: UserRole
    created_at: datetime


@dataclass(frozen=True)
class Asset:
    """A tradable instrument with a simulated price."""

    id: int
    symbol: str
    name: str
    asset_type: AssetType
    price: Decimal
    is_active: bool = True


@dataclass(frozen=True)
class Trade:
    """A buy or sell order for a quantity of an asset at a recorded price."""

    id: int
    user_id: int
    asset_id: int
    direction: TradeDirection
    amount: Decimal
    price: Decimal
    status: TradeStatus
    created_at: datetime
    executed_at: Optional[datetime] = None
    copied_from_trade_id: Optional[int] = None

    @property
    def generation(self) -> int:
        """0 for an original order, 1 for a copy of another trade."""
        return 0 if self.copied_from_trade_id is None else 1

    @property
    def is_pending(self) -> bool:
        return self.status is TradeStatus.PENDING


@dataclass(frozen=True)
class NewTrade:
    """Fields required to record a trade."""

    user_id: int
    asset_id: int
    direction: TradeDirection
    amount: Decimal
    price: Decimal
    status: TradeStatus = TradeStatus.PENDING
    copied_from_trade_id: Optional[int] = None


@dataclass(frozen=True)
class Trader:
    """A user who opted in to be copied.

    ``followers`` is a cache of the number of active copy relationships
    and is only maintained by the copy-relationship use cases.
    """

    id: int
    user_id: int
    bio: Optional[str]
    win_rate: Decimal
    profit_30d: Decimal
    rating: Decimal
    followers: int
    status: str = "active"


@dataclass(frozen=True)
class CopyRelationship:
    """Link between a follower and a trader being copied."""

    id: int
    follower_id: int
    trader_id: int
    allocation_percentage: Decimal
    status: CopyStatus
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status is CopyStatus.ACTIVE


@dataclass(frozen=True)
class InvestmentPlan:
    id: int
    name: str
    description: str
    min_amount: Decimal
    max_amount: Optional[Decimal]
    roi_percentage: Decimal
    lock_period_days: int
    features: list[str] = field(default_factory=list)
    status: PlanStatus = PlanStatus.ACTIVE


@dataclass(frozen=True)
class Investment:
    """A user's stake in a plan. The amount is debited at creation."""

    id: int
    user_id: int
    plan_id: int
    amount: Decimal
    status: InvestmentStatus
    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class Transaction:
    """A deposit, withdrawal or investment record on a user account.

    ``amount`` is always positive; the sign of the balance effect is
    determined by ``transaction_type``.
    """

    id: int
    user_id: int
    transaction_type: TransactionType
    amount: Decimal
    method: str
    status: TransactionStatus
    created_at: datetime
    transaction_ref: Optional[str] = None
    payment_notes: Optional[str] = None
    withdrawal_address: Optional[str] = None
    description: Optional[str] = None
    admin_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status is TransactionStatus.PENDING


@dataclass(frozen=True)
class NewTransaction:
    user_id: int
    transaction_type: TransactionType
    amount: Decimal
    method: str
    status: TransactionStatus = TransactionStatus.PENDING
    transaction_ref: Optional[str] = None
    payment_notes: Optional[str] = None
    withdrawal_address: Optional[str] = None
    description: Optional[str] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class KycDocument:
    id: int
    user_id: int
    document_type: str
    document_number: str
    verification_status: VerificationStatus
    submitted_at: datetime
    expiry_date: Optional[str] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class WatchlistItem:
    """An asset a user keeps an eye on. One entry per user and asset."""

    id: int
    user_id: int
    asset_id: int
    created_at: datetime


@dataclass(frozen=True)
class Notification:
    """A message kept in a user's in-app inbox."""

    id: int
    user_id: int
    title: str
    message: str
    notification_type: NotificationType
    read: bool
    created_at: datetime
    action_url: Optional[str] = None
