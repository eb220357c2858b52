"""
Data Transfer Objects for the brokerage application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from app.domain.brokerage.entities import (
    Asset,
    AssetType,
    CopyStatus,
    Investment,
    Trade,
    TradeDirection,
    Transaction,
    TransactionType,
    UserRole,
    VerificationStatus,
    WatchlistItem,
)


class ReviewAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"


# ── Trading ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExecuteTradeResult:
    """Output DTO for a trade execution attempt.

    Attributes:
        trade: The trade as it stands after the attempt.
        executed: True only if this call moved the trade to executed.
        copy_trade_ids: Pending follower copies created by this call.
        failed_follower_ids: Followers whose copy could not be created.
    """

    trade: Trade
    executed: bool
    copy_trade_ids: tuple[int, ...] = ()
    failed_follower_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class PlaceOrderCommand:
    """Input DTO for order entry.

    Attributes:
        user_id: Account placing the order.
        asset_id: Instrument to trade.
        direction: Buy or sell.
        amount: Quantity, up to 8 decimal places.
        price: Limit price. Defaults to the asset's current price.
    """

    user_id: int
    asset_id: int
    direction: TradeDirection
    amount: Decimal
    price: Decimal | None = None


@dataclass(frozen=True)
class PlaceOrderResult:
    trade: Trade
    executed: bool
    copy_trade_ids: tuple[int, ...] = ()
    failed_follower_ids: tuple[int, ...] = ()
    rejection_reason: str | None = None


# ── Money movement ───────────────────────────────────────────────────


@dataclass(frozen=True)
class CompleteTransactionResult:
    transaction: Transaction
    completed: bool


@dataclass(frozen=True)
class RequestTransactionCommand:
    """Input DTO for a deposit or withdrawal request.

    Attributes:
        user_id: Requesting account.
        transaction_type: DEPOSIT or WITHDRAWAL.
        amount: Positive amount in account currency.
        method: Payment rail, e.g. "bank_transfer" or "crypto".
        transaction_ref: External payment reference, if any.
        payment_notes: Free text from the user.
        withdrawal_address: Destination for withdrawals.
    """

    user_id: int
    transaction_type: TransactionType
    amount: Decimal
    method: str
    transaction_ref: str | None = None
    payment_notes: str | None = None
    withdrawal_address: str | None = None


@dataclass(frozen=True)
class ReviewTransactionCommand:
    transaction_id: int
    action: ReviewAction
    admin_id: int
    notes: str | None = None


# ── Copy trading ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class StartCopyingCommand:
    follower_id: int
    trader_id: int
    allocation_percentage: Decimal = Decimal("100.00")


@dataclass(frozen=True)
class UpdateCopySettingsCommand:
    """Input DTO for changing an existing copy relationship.

    Fields left as None are not changed.
    """

    relationship_id: int
    follower_id: int
    allocation_percentage: Decimal | None = None
    status: CopyStatus | None = None


# ── Investments ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateInvestmentCommand:
    user_id: int
    plan_id: int
    amount: Decimal


@dataclass(frozen=True)
class CreateInvestmentResult:
    """Output DTO for a created investment.

    Attributes:
        investment: The active investment.
        transaction: The completed ``investment`` transaction record.
        balance: The user's balance after the debit.
    """

    investment: Investment
    transaction: Transaction
    balance: Decimal


@dataclass(frozen=True)
class CreateInvestmentPlanCommand:
    """Input DTO for adding an investment plan to the catalogue.

    Attributes:
        lock_period: Day count or a phrase such as "3 months".
        max_amount: None or zero for no upper limit.
    """

    name: str
    description: str
    min_amount: Decimal
    max_amount: Decimal | None
    roi_percentage: Decimal
    lock_period: int | str
    features: list[str] = field(default_factory=list)


# ── Accounts and reference data ──────────────────────────────────────


@dataclass(frozen=True)
class OpenAccountCommand:
    username: str
    email: str
    full_name: str
    role: UserRole = UserRole.USER


@dataclass(frozen=True)
class RegisterTraderCommand:
    user_id: int
    bio: str | None = None


@dataclass(frozen=True)
class CreateAssetCommand:
    symbol: str
    name: str
    asset_type: AssetType
    price: Decimal


@dataclass(frozen=True)
class UpdateAssetCommand:
    """Input DTO for editing a listed asset.

    Fields left as None are not changed. ``is_active=False`` delists
    the asset; True lists it again.
    """

    asset_id: int
    name: str | None = None
    price: Decimal | None = None
    is_active: bool | None = None


@dataclass(frozen=True)
class SubmitKycDocumentCommand:
    user_id: int
    document_type: str
    document_number: str
    expiry_date: str | None = None


@dataclass(frozen=True)
class ReviewKycDocumentCommand:
    document_id: int
    status: VerificationStatus
    rejection_reason: str | None = None


# ── Watchlist ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AddToWatchlistCommand:
    user_id: int
    asset_id: int


@dataclass(frozen=True)
class WatchlistEntry:
    """A watchlist item together with the asset it refers to."""

    item: WatchlistItem
    asset: Asset
