"""
Pydantic schemas for brokerage API request/response validation.

These schemas enforce input validation and define the API contract.
Response models read straight from domain entities and DTOs
(``from_attributes``). Decimal amounts are serialized as strings so
no precision is lost in transit.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.application.brokerage.dtos import ReviewAction
from app.domain.brokerage.entities import (
    AssetType,
    CopyStatus,
    InvestmentStatus,
    KycStatus,
    NotificationType,
    PlanStatus,
    TradeDirection,
    TradeStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
    VerificationStatus,
)

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"
SYMBOL_PATTERN = r"^[A-Za-z0-9/._-]+$"


class _EntityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint.

    Attributes:
        status: ``ok`` or ``degraded``.
        version: Running service version.
        database: ``ok`` or ``unreachable``.
    """

    status: str
    version: str
    database: str


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    detail: str | None = None


# ------------------------------------------------------------------
# Accounts
# ------------------------------------------------------------------


class OpenAccountRequest(BaseModel):
    """Request schema for opening an account.

    Attributes:
        username: Unique login name.
        email: Unique contact address.
        full_name: Display name.
        role: ``user`` or ``admin``.
    """

    username: str = Field(..., min_length=3, max_length=64, pattern=USERNAME_PATTERN)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.USER


class UserResponse(_EntityResponse):
    id: int
    username: str
    email: str
    full_name: str
    balance: Decimal
    kyc_status: KycStatus
    role: UserRole
    created_at: datetime


class KycDocumentRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    document_type: str = Field(..., min_length=1, max_length=64)
    document_number: str = Field(..., min_length=1, max_length=128)
    expiry_date: str | None = Field(default=None, max_length=32)


class KycDocumentResponse(_EntityResponse):
    id: int
    user_id: int
    document_type: str
    document_number: str
    verification_status: VerificationStatus
    submitted_at: datetime
    expiry_date: str | None = None
    rejection_reason: str | None = None


class ReviewKycDocumentRequest(BaseModel):
    status: VerificationStatus = Field(..., description="verified or rejected")
    rejection_reason: str | None = Field(default=None, max_length=1000)


# ------------------------------------------------------------------
# Assets and traders
# ------------------------------------------------------------------


class CreateAssetRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=32, pattern=SYMBOL_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    asset_type: AssetType
    price: Decimal = Field(..., gt=0, decimal_places=6)


class UpdateAssetRequest(BaseModel):
    """Request schema for editing an asset. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: Decimal | None = Field(default=None, gt=0, decimal_places=6)
    is_active: bool | None = None


class AssetResponse(_EntityResponse):
    id: int
    symbol: str
    name: str
    asset_type: AssetType
    price: Decimal
    is_active: bool


class RegisterTraderRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    bio: str | None = Field(default=None, max_length=2000)


class TraderResponse(_EntityResponse):
    id: int
    user_id: int
    bio: str | None
    win_rate: Decimal
    profit_30d: Decimal
    rating: Decimal
    followers: int
    status: str


# ------------------------------------------------------------------
# Orders and trades
# ------------------------------------------------------------------


class PlaceOrderRequest(BaseModel):
    """Request schema for order entry.

    Attributes:
        user_id: Account placing the order.
        asset_id: Instrument to trade.
        direction: ``buy`` or ``sell``.
        amount: Quantity, up to 8 decimal places.
        price: Optional limit price; defaults to the asset's current price.
    """

    user_id: int = Field(..., gt=0)
    asset_id: int = Field(..., gt=0)
    direction: TradeDirection
    amount: Decimal = Field(..., gt=0, decimal_places=8)
    price: Decimal | None = Field(default=None, gt=0, decimal_places=6)


class TradeResponse(_EntityResponse):
    id: int
    user_id: int
    asset_id: int
    direction: TradeDirection
    amount: Decimal
    price: Decimal
    status: TradeStatus
    created_at: datetime
    executed_at: datetime | None = None
    copied_from_trade_id: int | None = None


class ExecuteTradeResponse(_EntityResponse):
    """Outcome of an execution attempt.

    ``executed`` is False when the trade was not pending; the trade is
    then returned unchanged.
    """

    trade: TradeResponse
    executed: bool
    copy_trade_ids: list[int]
    failed_follower_ids: list[int]


class PlaceOrderResponse(ExecuteTradeResponse):
    rejection_reason: str | None = None


# ------------------------------------------------------------------
# Copy trading
# ------------------------------------------------------------------


class StartCopyingRequest(BaseModel):
    follower_id: int = Field(..., gt=0)
    trader_id: int = Field(..., gt=0)
    allocation_percentage: Decimal | None = Field(
        default=None, gt=0, le=100, decimal_places=2
    )


class UpdateCopySettingsRequest(BaseModel):
    follower_id: int = Field(..., gt=0)
    allocation_percentage: Decimal | None = Field(
        default=None, gt=0, le=100, decimal_places=2
    )
    status: CopyStatus | None = None


class CopyRelationshipResponse(_EntityResponse):
    id: int
    follower_id: int
    trader_id: int
    allocation_percentage: Decimal
    status: CopyStatus
    created_at: datetime


class StopCopyingResponse(BaseModel):
    stopped: bool


# ------------------------------------------------------------------
# Money movement
# ------------------------------------------------------------------


class TransactionRequest(BaseModel):
    """Request schema for a deposit or withdrawal.

    The transaction is always created pending, whatever the client sends.
    """

    user_id: int = Field(..., gt=0)
    transaction_type: TransactionType
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: str = Field(..., min_length=1, max_length=64)
    transaction_ref: str | None = Field(default=None, max_length=128)
    payment_notes: str | None = Field(default=None, max_length=1000)
    withdrawal_address: str | None = Field(default=None, max_length=255)


class TransactionResponse(_EntityResponse):
    id: int
    user_id: int
    transaction_type: TransactionType
    amount: Decimal
    method: str
    status: TransactionStatus
    created_at: datetime
    transaction_ref: str | None = None
    payment_notes: str | None = None
    withdrawal_address: str | None = None
    description: str | None = None
    admin_notes: str | None = None
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    completed_at: datetime | None = None


class CompleteTransactionResponse(_EntityResponse):
    transaction: TransactionResponse
    completed: bool


class ReviewTransactionRequest(BaseModel):
    action: ReviewAction
    admin_id: int = Field(..., gt=0)
    notes: str | None = Field(default=None, max_length=1000)


# ------------------------------------------------------------------
# Investments
# ------------------------------------------------------------------


class CreateInvestmentPlanRequest(BaseModel):
    """Request schema for a new investment plan.

    Attributes:
        lock_period: Day count, or a phrase such as "3 months" or "1 year".
        max_amount: Omit or send 0 for no upper limit.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    min_amount: Decimal = Field(..., gt=0, decimal_places=2)
    max_amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    roi_percentage: Decimal = Field(..., ge=0, lt=1000, decimal_places=2)
    lock_period: int | str
    features: list[str] = Field(default_factory=list)


class InvestmentPlanResponse(_EntityResponse):
    id: int
    name: str
    description: str
    min_amount: Decimal
    max_amount: Decimal | None
    roi_percentage: Decimal
    lock_period_days: int
    features: list[str]
    status: PlanStatus


class CreateInvestmentRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    plan_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class InvestmentResponse(_EntityResponse):
    id: int
    user_id: int
    plan_id: int
    amount: Decimal
    status: InvestmentStatus
    start_date: datetime
    end_date: datetime


class CreateInvestmentResponse(_EntityResponse):
    investment: InvestmentResponse
    transaction: TransactionResponse
    balance: Decimal


# ------------------------------------------------------------------
# Watchlist and notifications
# ------------------------------------------------------------------


class WatchlistRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    asset_id: int = Field(..., gt=0)


class WatchlistItemResponse(BaseModel):
    """A watchlist entry with the asset's current listing and price."""

    id: int
    user_id: int
    asset_id: int
    created_at: datetime
    asset: AssetResponse


class NotificationResponse(_EntityResponse):
    id: int
    user_id: int
    title: str
    message: str
    notification_type: NotificationType
    read: bool
    created_at: datetime
    action_url: str | None = None


class MarkNotificationsReadResponse(BaseModel):
    marked: int
